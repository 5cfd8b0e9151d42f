from pathlib import Path

import pytest
import yaml

from hostguard.config import DEFAULTS, ConfigRepository
from hostguard.errors import InvalidConfigFormatError, InvalidConfigSchemaError
from hostguard.models import HostsConfig, InstallTarget


def test_missing_config_uses_defaults(root: Path) -> None:
    repository = ConfigRepository(root)

    assert repository.load() == DEFAULTS
    assert repository.get_install_target() == InstallTarget("/etc/hosts", False)
    assert repository.hosts_config() == HostsConfig("127.0.0.1", "::1", False)


def test_default_root_lives_under_home(tmp_path: Path) -> None:
    assert ConfigRepository().root == tmp_path / ".config" / "hostguard"


def test_custom_location_requires_symlink(root: Path) -> None:
    repository = ConfigRepository(root)
    repository.set("install_location", "custom")

    assert repository.get_install_target() == InstallTarget("/data/etc/hosts", True)


def test_custom_target_equal_to_system_path_needs_no_symlink(root: Path) -> None:
    repository = ConfigRepository(root)
    repository.set("install_location", "custom")
    repository.set("custom_target", "/etc/hosts")

    assert repository.get_install_target().requires_symlink is False


def test_set_coerces_values_and_persists_yaml(root: Path) -> None:
    repository = ConfigRepository(root)

    assert repository.set("enable_ipv6", "yes") is True
    assert repository.set("privilege_command", "doas -n") == ["doas", "-n"]
    assert repository.set("security_context", "none") is None

    saved = yaml.safe_load(repository.config_path.read_text(encoding="utf-8"))
    assert saved == {
        "enable_ipv6": True,
        "privilege_command": ["doas", "-n"],
        "security_context": None,
    }
    assert repository.ipv6_enabled() is True


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("custom_target", "/data/etc/"),
        ("custom_target", "relative/hosts"),
        ("install_location", "sdcard"),
        ("file_mode", "rw-r--r--"),
        ("enable_ipv6", "maybe"),
    ],
)
def test_set_rejects_invalid_values(root: Path, key: str, value: str) -> None:
    repository = ConfigRepository(root)

    with pytest.raises(InvalidConfigSchemaError):
        repository.set(key, value)

    assert not repository.config_path.exists()


def test_set_rejects_unknown_keys(root: Path) -> None:
    with pytest.raises(KeyError):
        ConfigRepository(root).set("colour", "blue")


def test_malformed_yaml_raises_format_error(root: Path) -> None:
    root.mkdir(parents=True)
    (root / "config.yaml").write_text("install_location: [unclosed\n", encoding="utf-8")

    with pytest.raises(InvalidConfigFormatError):
        ConfigRepository(root).load()


def test_unknown_keys_in_file_raise_schema_error(root: Path) -> None:
    root.mkdir(parents=True)
    (root / "config.yaml").write_text("unexpected: 1\n", encoding="utf-8")

    with pytest.raises(InvalidConfigSchemaError, match="unexpected"):
        ConfigRepository(root).load()


def test_redirection_addresses_come_from_config(root: Path) -> None:
    repository = ConfigRepository(root)
    repository.set("redirection_ipv4", "0.0.0.0")
    repository.set("redirection_ipv6", "::")

    assert repository.get_redirection_addresses() == ("0.0.0.0", "::")
