"""Toggle the mount mode of the partition holding a file."""

from __future__ import annotations

import logging
import os
import re
import shlex
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from hostguard.constants import COMMAND_MOUNT
from hostguard.errors import CommandError
from hostguard.models import MountType
from hostguard.system.shell import PrivilegedCommandRunner
from hostguard.utils import merge_all_lines


logger = logging.getLogger(__name__)

_OCTAL_ESCAPE_RE = re.compile(r"\\([0-7]{3})")


def _unescape(field: str) -> str:
    return _OCTAL_ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 8)), field)


def _absolute(path: str) -> str:
    # Resolve the parent only: the last component may be a symlink we manage.
    parent, name = os.path.split(os.path.abspath(path))
    return os.path.join(os.path.realpath(parent), name)


def _nearest_existing(path: str) -> str:
    current = path
    while current and not os.path.exists(current):
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return current or "/"


@dataclass(frozen=True)
class MountEntry:
    device: str
    mount_point: str
    fs_type: str
    options: tuple[str, ...]

    @property
    def read_only(self) -> bool:
        return MountType.READ_ONLY.value in self.options


class PartitionMountController:
    def __init__(
        self, runner: PrivilegedCommandRunner, mounts_file: str = "/proc/mounts"
    ) -> None:
        self.runner = runner
        self.mounts_file = Path(mounts_file)

    def list_mounts(self) -> list[MountEntry]:
        try:
            text = self.mounts_file.read_text(encoding="utf-8")
        except OSError as exc:
            logger.debug("Unable to read %s: %s", self.mounts_file, exc)
            return []
        entries: list[MountEntry] = []
        for line in text.splitlines():
            fields = line.split()
            if len(fields) < 4:
                continue
            entries.append(
                MountEntry(
                    device=_unescape(fields[0]),
                    mount_point=_unescape(fields[1]),
                    fs_type=fields[2],
                    options=tuple(fields[3].split(",")),
                )
            )
        return entries

    def find_mount(self, path: str) -> Optional[MountEntry]:
        absolute = _absolute(path)
        best: Optional[MountEntry] = None
        for entry in self.list_mounts():
            point = entry.mount_point.rstrip("/") or "/"
            if point != "/" and absolute != point and not absolute.startswith(point + "/"):
                continue
            # Later entries shadow earlier ones on the same mount point.
            if best is None or len(point) >= len(best.mount_point.rstrip("/") or "/"):
                best = entry
        return best

    def get_mount_type(self, path: str) -> MountType:
        entry = self.find_mount(path)
        if entry is None:
            writable = os.access(_nearest_existing(_absolute(path)), os.W_OK)
            return MountType.READ_WRITE if writable else MountType.READ_ONLY
        return MountType.READ_ONLY if entry.read_only else MountType.READ_WRITE

    def is_writable(self, path: str) -> bool:
        return self.get_mount_type(path) == MountType.READ_WRITE

    def remount(self, path: str, mount_type: MountType) -> bool:
        entry = self.find_mount(path)
        if entry is None:
            logger.error("No mount point found for %s", path)
            return False
        logger.info("Remounting %s as %s", entry.mount_point, mount_type.value)
        result = self.runner.run(
            [
                f"{COMMAND_MOUNT} -o {mount_type.value},remount "
                f"{shlex.quote(entry.mount_point)}"
            ]
        )
        if not result.success:
            logger.error(
                "Failed to remount %s as %s: %s",
                entry.mount_point,
                mount_type.value,
                merge_all_lines(result.stderr),
            )
        return result.success

    @contextmanager
    def read_write(self, path: str) -> Iterator[bool]:
        """Run the body with the partition of ``path`` mounted read-write.

        Yields whether a remount happened. The read-only mode is restored on
        every exit path; a failing restore is logged and never replaces the
        body's own error.
        """
        if self.is_writable(path):
            yield False
            return

        if not self.remount(path, MountType.READ_WRITE):
            raise CommandError(f"Failed to remount partition of {path} as read-write.")
        try:
            yield True
        finally:
            try:
                if not self.remount(path, MountType.READ_ONLY):
                    logger.warning("Partition of %s left mounted read-write", path)
            except Exception:
                logger.exception("Unable to restore read-only mount for %s", path)
