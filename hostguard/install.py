"""Hosts file installation engine.

``InstallOrchestrator`` generates the hosts file from the rule stores, stages
it in a private directory and installs it into its privileged target through
``PrivilegedCommandRunner``. Only one apply/revert runs at a time; a second
call while one is in flight fails with ``InstallBusyError``.

The installed state is never cached: ``probe_state`` re-reads the live
target every time since anything may rewrite it between calls.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from hostguard.config import ConfigRepository
from hostguard.constants import (
    COMMAND_CHMOD,
    COMMAND_CHOWN,
    COMMAND_COPY,
    COMMAND_MKDIR,
    COMMAND_RM,
    DEFAULT_HOSTS_FILENAME,
    HEADER_GENERATED,
    HOSTS_FILENAME,
    STAGING_DIRNAME,
)
from hostguard.errors import (
    ApplyVerificationError,
    CommandError,
    CopyFailedError,
    HostsAppError,
    InstallBusyError,
    InstallError,
    NotEnoughSpaceError,
    RevertFailedError,
    StagingWriteError,
    SymlinkMissingError,
)
from hostguard.hosts.generator import HostsFileGenerator
from hostguard.models import (
    STATUS_MESSAGES,
    InstallErrorKind,
    InstallState,
    InstallStatus,
    InstallTarget,
    OperationState,
)
from hostguard.repositories.base import IEntryRepository, ISourceRepository
from hostguard.repositories.entries import HostListRepository
from hostguard.repositories.sources import HostsSourceRepository
from hostguard.system.mounts import PartitionMountController
from hostguard.system.shell import PrivilegedCommandRunner
from hostguard.system.symlinks import SymlinkController
from hostguard.utils import merge_all_lines, write_private_bytes


logger = logging.getLogger(__name__)

StatusListener = Callable[[InstallStatus], None]


def partition_free_space(path: str) -> int:
    """Free bytes on the partition of ``path``; 0 when it cannot be measured."""
    current = os.path.dirname(path) or "/"
    while not os.path.isdir(current):
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    try:
        return shutil.disk_usage(current).free
    except OSError as exc:
        logger.debug("Unable to measure free space for %s: %s", path, exc)
        return 0


class InstallOrchestrator:
    def __init__(
        self,
        sources: ISourceRepository,
        entries: IEntryRepository,
        config: ConfigRepository,
        runner: PrivilegedCommandRunner,
        mounts: Optional[PartitionMountController] = None,
        symlinks: Optional[SymlinkController] = None,
        generator: Optional[HostsFileGenerator] = None,
        staging_dir: Optional[Path] = None,
        clock: Optional[Callable[[], datetime]] = None,
        free_space: Callable[[str], int] = partition_free_space,
        listener: Optional[StatusListener] = None,
    ) -> None:
        self.sources = sources
        self.entries = entries
        self.config = config
        self.runner = runner
        self.mounts = mounts or PartitionMountController(
            runner, mounts_file=config.get("mounts_file")
        )
        self.symlinks = symlinks or SymlinkController(runner, self.mounts, config)
        self.clock = clock or datetime.now
        self.generator = generator or HostsFileGenerator(clock=self.clock)
        self.staging_dir = staging_dir or (config.root / STAGING_DIRNAME)
        self.free_space = free_space
        self.listener = listener

        self._lock = threading.Lock()
        self._worker: Optional[ThreadPoolExecutor] = None
        self._worker_lock = threading.Lock()
        self._status = InstallStatus(OperationState.IDLE, "Idle")

    @classmethod
    def create_default(
        cls, root: Optional[Path] = None, listener: Optional[StatusListener] = None
    ) -> "InstallOrchestrator":
        config = ConfigRepository(root)
        return cls(
            sources=HostsSourceRepository(config.root),
            entries=HostListRepository(config.root),
            config=config,
            runner=PrivilegedCommandRunner.from_config(config.load()),
            listener=listener,
        )

    @property
    def state(self) -> OperationState:
        return self._status.state

    @property
    def status(self) -> InstallStatus:
        return self._status

    def apply(self) -> None:
        with self._exclusive(OperationState.APPLYING, "Applying hosts file") as previous:
            try:
                self._apply()
            except InstallError as exc:
                logger.error("Apply failed: %s", exc)
                self._publish(previous, STATUS_MESSAGES[exc.kind])
                raise
            except Exception as exc:
                logger.exception("Apply failed unexpectedly")
                self._publish(
                    previous, STATUS_MESSAGES[InstallErrorKind.STAGING_WRITE_FAILED]
                )
                if isinstance(exc, (HostsAppError, OSError)):
                    raise StagingWriteError(cause=exc) from exc
                raise
            self._publish(OperationState.APPLIED, "Hosts file applied")

    def revert(self) -> None:
        with self._exclusive(OperationState.REVERTING, "Reverting hosts file"):
            try:
                self._revert_hosts_file()
                self.sources.clear_installed()
            except Exception as exc:
                logger.error("Revert failed: %s", exc)
                self._publish(
                    OperationState.APPLIED,
                    STATUS_MESSAGES[InstallErrorKind.REVERT_FAILED],
                )
                if isinstance(exc, (HostsAppError, OSError)):
                    raise RevertFailedError(cause=exc) from exc
                raise
            self._publish(OperationState.IDLE, "Hosts file reverted")

    def create_symlink(self) -> None:
        with self._exclusive(None, "Creating symlink"):
            target = self.config.get_install_target()
            if not target.requires_symlink:
                logger.info("Target %s is the system hosts file, no symlink needed", target.path)
                return
            if not self.symlinks.create_symlink(target.path):
                raise SymlinkMissingError(
                    f"unable to link {self.config.get_system_hosts_path()} to {target.path}"
                )

    def is_symlink_correct(self) -> bool:
        target = self.config.get_install_target()
        return self.symlinks.is_symlink_correct(target.path)

    def probe_state(self) -> InstallState:
        target = self.config.get_install_target().path
        try:
            with open(target, "r", encoding="utf-8", errors="replace") as handle:
                first_line = handle.readline().rstrip("\r\n")
        except OSError as exc:
            logger.debug("Unable to read %s: %s", target, exc)
            return InstallState.UNKNOWN
        logger.debug("First line of %s: %s", target, first_line)
        if first_line.startswith(HEADER_GENERATED):
            return InstallState.APPLIED
        return InstallState.NOT_APPLIED

    def check_applied(self) -> bool:
        return self.probe_state() == InstallState.APPLIED

    def check_applied_async(self) -> "Future[bool]":
        return self._background().submit(self.check_applied)

    def submit_apply(self) -> "Future[None]":
        return self._background().submit(self.apply)

    def submit_revert(self) -> "Future[None]":
        return self._background().submit(self.revert)

    def close(self) -> None:
        with self._worker_lock:
            worker, self._worker = self._worker, None
        if worker is not None:
            worker.shutdown(wait=True)

    def generate(self) -> bytes:
        return self.generator.generate(
            sources=self.sources.get_enabled(),
            block_hosts=self.entries.get_enabled_blocked(),
            allow_patterns=self.entries.get_enabled_allowed(),
            redirects=self.entries.get_enabled_redirects(),
            config=self.config.hosts_config(),
        )

    def _apply(self) -> None:
        try:
            target = self.config.get_install_target()
        except HostsAppError as exc:
            raise StagingWriteError(cause=exc) from exc
        if target.requires_symlink and not self.symlinks.is_symlink_correct(target.path):
            raise SymlinkMissingError(
                f"{self.config.get_system_hosts_path()} does not link to {target.path}"
            )

        self._publish(OperationState.APPLYING, "Generating hosts file")
        try:
            content = self.generate()
        except (HostsAppError, OSError) as exc:
            raise StagingWriteError(cause=exc) from exc
        staged = self._stage(HOSTS_FILENAME, content)

        self._publish(OperationState.APPLYING, "Installing hosts file")
        try:
            self._copy_hosts_file(staged, target)
        except InstallError:
            raise
        except (HostsAppError, OSError) as exc:
            raise CopyFailedError(cause=exc) from exc
        self._discard_staged(HOSTS_FILENAME)

        if not self.symlinks.is_symlink_correct(target.path):
            raise ApplyVerificationError(f"{target.path} is not the live hosts file")
        try:
            self.sources.mark_installed(self.clock())
        except (HostsAppError, OSError) as exc:
            raise StagingWriteError(
                f"hosts file installed but source timestamps were not saved: {exc}",
                cause=exc,
            ) from exc

    def _revert_hosts_file(self) -> None:
        target = self.config.get_install_target()
        staged = self._stage(DEFAULT_HOSTS_FILENAME, self.generator.default_content())
        self._copy_hosts_file(staged, target)
        self._discard_staged(DEFAULT_HOSTS_FILENAME)

    def _stage(self, name: str, content: bytes) -> Path:
        path = self.staging_dir / name
        try:
            self._unstage(name)
            write_private_bytes(path, content)
        except OSError as exc:
            raise StagingWriteError(cause=exc) from exc
        return path

    def _unstage(self, name: str) -> None:
        (self.staging_dir / name).unlink(missing_ok=True)

    def _discard_staged(self, name: str) -> None:
        # The target is already written; a leftover staged copy is harmless.
        try:
            self._unstage(name)
        except OSError as exc:
            logger.warning("Unable to remove staged file %s: %s", name, exc)

    def _copy_hosts_file(self, source: Path, target: InstallTarget) -> None:
        """Copy ``source`` to the target with privileged commands.

        Raises ``NotEnoughSpaceError`` before the copy batch when the
        partition is too small and ``CommandError`` on any remount or batch
        failure. A missing parent of a custom target is created with a
        privileged ``mkdir -p`` ahead of the space check, so that one command
        can precede ``NotEnoughSpaceError``.
        """
        path = target.path
        logger.info("Copy hosts file with target: %s", path)
        if path.endswith("/"):
            raise CommandError(f"Target ends with a path separator: {path}")
        settings = self.config.load()
        is_system_path = path == settings["system_hosts_path"]
        quoted = shlex.quote(path)

        parent = os.path.dirname(path)
        if not is_system_path and not os.path.isdir(parent):
            result = self.runner.run([f"{COMMAND_MKDIR} {shlex.quote(parent)}"])
            if not result.success:
                raise CommandError(
                    f"Failed to create directories: {parent}: {merge_all_lines(result.stderr)}"
                )

        size = source.stat().st_size
        logger.info("Size of hosts file: %s", size)
        if not self._has_enough_space(path, size):
            raise NotEnoughSpaceError(f"{size} bytes needed on the partition of {path}")

        commands = []
        if is_system_path:
            commands.append(f"{COMMAND_RM} {quoted}")
        commands.extend(
            [
                f"{COMMAND_COPY} if={shlex.quote(str(source))} of={quoted}",
                f"{COMMAND_CHOWN} {settings['owner']} {quoted}",
                f"{COMMAND_CHMOD} {settings['file_mode']} {quoted}",
            ]
        )
        with self.mounts.read_write(path):
            result = self.runner.run(commands)
            if not result.success:
                raise CommandError(
                    f"Failed to copy hosts file: {merge_all_lines(result.stderr)}"
                )

    def _has_enough_space(self, path: str, size: int) -> bool:
        # Some virtual filesystems report no free space at all; 0 is taken as
        # "unknown" rather than "full".
        free = self.free_space(path)
        return free == 0 or free >= size

    @contextmanager
    def _exclusive(
        self, state: Optional[OperationState], message: str
    ) -> Iterator[OperationState]:
        if not self._lock.acquire(blocking=False):
            raise InstallBusyError(STATUS_MESSAGES[InstallErrorKind.BUSY])
        previous = self._status.state
        try:
            if state is not None:
                self._publish(state, message)
            yield previous
        finally:
            self._lock.release()

    def _publish(self, state: OperationState, message: str) -> None:
        self._status = InstallStatus(state=state, message=message)
        if self.listener is None:
            return
        try:
            self.listener(self._status)
        except Exception:
            logger.exception("Status listener failed")

    def _background(self) -> ThreadPoolExecutor:
        with self._worker_lock:
            if self._worker is None:
                self._worker = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="hostguard-install"
                )
            return self._worker
