from pathlib import Path
from typing import Optional

from hostguard.models import InstallErrorKind


class HostsAppError(Exception):
    """Base user-facing application error."""


class HostsFileError(HostsAppError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class InvalidConfigFormatError(HostsFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid YAML format ({detail})")


class InvalidConfigSchemaError(HostsFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config schema ({detail})")


class InvalidRuleError(HostsAppError):
    """A rule source or host entry violates the store invariants."""


class CommandError(HostsAppError):
    """A privileged command batch or mount toggle failed."""


class InstallError(HostsAppError):
    KIND: InstallErrorKind

    def __init__(
        self, detail: Optional[str] = None, cause: Optional[BaseException] = None
    ) -> None:
        self.kind = self.KIND
        self.detail = detail
        self.cause = cause
        message = self.kind.value
        if detail:
            message = f"{message}: {detail}"
        elif cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SymlinkMissingError(InstallError):
    KIND = InstallErrorKind.SYMLINK_MISSING


class StagingWriteError(InstallError):
    KIND = InstallErrorKind.STAGING_WRITE_FAILED


class NotEnoughSpaceError(InstallError):
    KIND = InstallErrorKind.NOT_ENOUGH_SPACE


class CopyFailedError(InstallError):
    KIND = InstallErrorKind.COPY_FAILED


class ApplyVerificationError(InstallError):
    KIND = InstallErrorKind.APPLY_VERIFICATION_FAILED


class RevertFailedError(InstallError):
    KIND = InstallErrorKind.REVERT_FAILED


class InstallBusyError(InstallError):
    KIND = InstallErrorKind.BUSY
