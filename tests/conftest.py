import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from click.testing import CliRunner
import pytest
import yaml


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from hostguard.models import CommandResult  # noqa: E402
from hostguard.system.shell import PrivilegedCommandRunner  # noqa: E402


class RecordingRunner(PrivilegedCommandRunner):
    """Runs batches unprivileged and records them.

    ``failures`` maps a command substring to the stderr line returned instead
    of executing the batch; ``hook`` is called before every batch.
    """

    def __init__(
        self,
        failures: Optional[dict[str, str]] = None,
        hook: Optional[Callable[[Sequence[str]], None]] = None,
    ) -> None:
        super().__init__(elevate=())
        self.failures = failures or {}
        self.hook = hook
        self.batches: list[list[str]] = []

    def run(self, commands: Sequence[str]) -> CommandResult:
        self.batches.append(list(commands))
        if self.hook is not None:
            self.hook(commands)
        for needle, message in self.failures.items():
            if any(needle in command for command in commands):
                return CommandResult(success=False, stderr=[message], code=1)
        return super().run(commands)

    @property
    def commands(self) -> list[str]:
        return [command for batch in self.batches for command in batch]

    def ran(self, needle: str) -> bool:
        return any(needle in command for command in self.commands)


class StubRunner(PrivilegedCommandRunner):
    """Never executes anything; answers from ``responses`` by substring."""

    def __init__(self, responses: Optional[dict[str, CommandResult]] = None) -> None:
        super().__init__(elevate=())
        self.responses = responses or {}
        self.batches: list[list[str]] = []

    def run(self, commands: Sequence[str]) -> CommandResult:
        self.batches.append(list(commands))
        for needle, result in self.responses.items():
            if any(needle in command for command in commands):
                return result
        return CommandResult(success=True)

    @property
    def commands(self) -> list[str]:
        return [command for batch in self.batches for command in batch]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / ".config" / "hostguard"


@pytest.fixture
def system_hosts(tmp_path: Path) -> Path:
    path = tmp_path.resolve() / "system" / "etc" / "hosts"
    path.parent.mkdir(parents=True)
    path.write_text("127.0.0.1 localhost\n", encoding="utf-8")
    return path


@pytest.fixture
def mounts_file(tmp_path: Path) -> Path:
    path = tmp_path / "mounts"
    path.write_text("rootfs / rootfs rw 0 0\n", encoding="utf-8")
    return path


@pytest.fixture
def write_config(root: Path, system_hosts: Path, mounts_file: Path):
    def _write(**overrides: Any) -> Path:
        payload: dict[str, Any] = {
            "system_hosts_path": str(system_hosts),
            "privilege_command": [],
            "owner": f"{os.getuid()}:{os.getgid()}",
            "mounts_file": str(mounts_file),
        }
        payload.update(overrides)
        root.mkdir(parents=True, exist_ok=True)
        path = root / "config.yaml"
        path.write_text(yaml.safe_dump(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def configured(write_config) -> Path:
    return write_config()


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def make_recording_runner():
    return RecordingRunner


@pytest.fixture
def make_stub_runner():
    return StubRunner


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            env.setdefault("XDG_CONFIG_HOME", str(tmp_path / ".config"))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()
