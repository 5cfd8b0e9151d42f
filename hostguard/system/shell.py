"""The single privilege boundary: run shell command batches as root."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional, Sequence

from hostguard.models import CommandResult


logger = logging.getLogger(__name__)


def _split_lines(text: Optional[str]) -> list[str]:
    if not text:
        return []
    return [line for line in text.splitlines() if line.strip()]


class PrivilegedCommandRunner:
    """Execute command batches in one elevated shell session.

    Every command of a batch runs in the same ``sh`` process with ``set -e``,
    so the batch succeeds only if each command exits zero. Failures are
    returned as values, never raised. No timeout is applied.
    """

    def __init__(
        self, elevate: Optional[Sequence[str]] = None, shell: str = "/bin/sh"
    ) -> None:
        if elevate is None:
            elevate = ("sudo", "-n")
        self.elevate = tuple(elevate) if os.geteuid() != 0 else ()
        self.shell = shell

    @classmethod
    def from_config(cls, config: dict) -> "PrivilegedCommandRunner":
        return cls(elevate=config.get("privilege_command") or ())

    def run(self, commands: Sequence[str]) -> CommandResult:
        if not commands:
            return CommandResult(success=True)
        script = "\n".join(["set -e", *commands])
        argv = [*self.elevate, self.shell, "-c", script]
        logger.info("Running privileged batch: %s", " && ".join(commands))
        try:
            completed = subprocess.run(
                argv, capture_output=True, text=True, check=False
            )
        except OSError as exc:
            logger.error("Unable to start privileged shell %s: %s", argv[0], exc)
            return CommandResult(success=False, stderr=[str(exc)], code=127)

        result = CommandResult(
            success=completed.returncode == 0,
            stdout=_split_lines(completed.stdout),
            stderr=_split_lines(completed.stderr),
            code=completed.returncode,
        )
        if not result.success:
            logger.debug(
                "Privileged batch exited with %s: %s", result.code, result.stderr
            )
        return result
