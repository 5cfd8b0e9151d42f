from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ListType(str, Enum):
    BLOCK = "block"
    ALLOW = "allow"
    REDIRECT = "redirect"


class InstallLocation(str, Enum):
    SYSTEM = "system"
    CUSTOM = "custom"


class InstallState(str, Enum):
    UNKNOWN = "unknown"
    APPLIED = "applied"
    NOT_APPLIED = "not_applied"


class OperationState(str, Enum):
    IDLE = "idle"
    APPLYING = "applying"
    APPLIED = "applied"
    REVERTING = "reverting"


class MountType(str, Enum):
    READ_ONLY = "ro"
    READ_WRITE = "rw"


class InstallErrorKind(str, Enum):
    SYMLINK_MISSING = "symlink_missing"
    STAGING_WRITE_FAILED = "staging_write_failed"
    NOT_ENOUGH_SPACE = "not_enough_space"
    COPY_FAILED = "copy_failed"
    APPLY_VERIFICATION_FAILED = "apply_verification_failed"
    REVERT_FAILED = "revert_failed"
    BUSY = "busy"


STATUS_MESSAGES: dict[InstallErrorKind, str] = {
    InstallErrorKind.SYMLINK_MISSING: "The system hosts file does not link to the custom target.",
    InstallErrorKind.STAGING_WRITE_FAILED: "Unable to write the generated hosts file to private storage.",
    InstallErrorKind.NOT_ENOUGH_SPACE: "Not enough space on the target partition.",
    InstallErrorKind.COPY_FAILED: "Unable to copy the hosts file to its target.",
    InstallErrorKind.APPLY_VERIFICATION_FAILED: "The hosts file was copied but is not in effect.",
    InstallErrorKind.REVERT_FAILED: "There was a problem reverting the hosts file.",
    InstallErrorKind.BUSY: "Another install operation is already running.",
}


@dataclass(frozen=True)
class HostsSource:
    url: str
    enabled: bool = True
    last_installed_at: Optional[datetime] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "enabled": self.enabled,
            "last_installed_at": self.last_installed_at.isoformat(timespec="seconds")
            if self.last_installed_at is not None
            else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "HostsSource":
        stamp = raw.get("last_installed_at")
        return cls(
            url=str(raw["url"]),
            enabled=bool(raw.get("enabled", True)),
            last_installed_at=datetime.fromisoformat(stamp)
            if isinstance(stamp, str)
            else None,
        )

    def with_installed_at(self, when: Optional[datetime]) -> "HostsSource":
        return replace(self, last_installed_at=when)


@dataclass(frozen=True)
class HostListItem:
    host: str
    kind: ListType
    redirection: Optional[str] = None
    enabled: bool = True
    source_url: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "kind": self.kind.value,
            "redirection": self.redirection,
            "enabled": self.enabled,
            "source_url": self.source_url,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "HostListItem":
        redirection = raw.get("redirection")
        source_url = raw.get("source_url")
        return cls(
            host=str(raw["host"]),
            kind=ListType(raw["kind"]),
            redirection=str(redirection) if redirection is not None else None,
            enabled=bool(raw.get("enabled", True)),
            source_url=str(source_url) if source_url is not None else None,
        )


@dataclass(frozen=True)
class InstallTarget:
    path: str
    requires_symlink: bool


@dataclass(frozen=True)
class HostsConfig:
    """Generator inputs derived from the configuration."""

    redirection_ipv4: str = "127.0.0.1"
    redirection_ipv6: str = "::1"
    enable_ipv6: bool = False


@dataclass(frozen=True)
class CommandResult:
    success: bool
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    code: int = 0


@dataclass(frozen=True)
class InstallStatus:
    state: OperationState
    message: str
