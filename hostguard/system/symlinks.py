import logging
import shlex

from hostguard.config import ConfigRepository
from hostguard.constants import (
    COMMAND_CHCON,
    COMMAND_CHMOD,
    COMMAND_CHOWN,
    COMMAND_LN,
    COMMAND_MKDIR,
    COMMAND_READLINK,
    COMMAND_RM,
    COMMAND_TOUCH,
)
from hostguard.errors import CommandError
from hostguard.system.mounts import PartitionMountController
from hostguard.system.shell import PrivilegedCommandRunner
from hostguard.utils import merge_all_lines


logger = logging.getLogger(__name__)


class SymlinkController:
    def __init__(
        self,
        runner: PrivilegedCommandRunner,
        mounts: PartitionMountController,
        config: ConfigRepository,
    ) -> None:
        self.runner = runner
        self.mounts = mounts
        self.config = config

    def create_symlink(self, target: str) -> bool:
        """Link the system hosts path to ``target``. Failures are logged only."""
        settings = self.config.load()
        system_path = settings["system_hosts_path"]
        quoted_system = shlex.quote(system_path)
        quoted_target = shlex.quote(target)
        parent = target.rsplit("/", 1)[0] or "/"

        commands = [
            f"{COMMAND_MKDIR} {shlex.quote(parent)}",
            f"{COMMAND_TOUCH} {quoted_target}",
            f"{COMMAND_RM} {quoted_system}",
            f"{COMMAND_LN} {quoted_target} {quoted_system}",
        ]
        if settings["security_context"]:
            commands.append(
                f"{COMMAND_CHCON} {shlex.quote(settings['security_context'])} {quoted_target}"
            )
        commands.extend(
            [
                f"{COMMAND_CHOWN} {settings['owner']} {quoted_target}",
                f"{COMMAND_CHMOD} {settings['file_mode']} {quoted_target}",
            ]
        )

        try:
            with self.mounts.read_write(system_path):
                result = self.runner.run(commands)
        except CommandError as exc:
            logger.error("Failed to create symbolic link: %s", exc)
            return False

        if not result.success:
            logger.error(
                "Failed to create symbolic link: %s", merge_all_lines(result.stderr)
            )
        return result.success

    def is_symlink_correct(self, target: str) -> bool:
        system_path = self.config.get_system_hosts_path()
        logger.info(
            "Checking whether %s is a symlink and pointing to %s or not.",
            system_path,
            target,
        )
        result = self.runner.run([f"{COMMAND_READLINK} {shlex.quote(system_path)}"])
        if not result.success or not result.stdout:
            return False
        resolved = result.stdout[0].strip()
        logger.debug("symlink: %s; target: %s", resolved, target)
        return resolved == target
