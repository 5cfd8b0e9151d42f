import os
from typing import Final


HEADER_GENERATED: Final[str] = "# This hosts file has been generated by hostguard on:"
HEADER_NOTICE: Final[str] = (
    "# Please do not modify it directly, it will be overwritten when hostguard is applied again."
)
HEADER_SOURCES: Final[str] = "# This file is generated from the following sources:"
TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

LINE_SEPARATOR: Final[str] = os.linesep

LOCALHOST_HOSTNAME: Final[str] = "localhost"
LOCALHOST_IPV4: Final[str] = "127.0.0.1"
LOCALHOST_IPV6: Final[str] = "::1"

SYSTEM_HOSTS_PATH: Final[str] = "/etc/hosts"
DEFAULT_CUSTOM_TARGET: Final[str] = "/data/etc/hosts"

HOSTS_FILENAME: Final[str] = "hosts"
DEFAULT_HOSTS_FILENAME: Final[str] = "default_hosts"
STAGING_DIRNAME: Final[str] = "staging"

CONFIG_FILENAME: Final[str] = "config.yaml"
SOURCES_FILENAME: Final[str] = "sources.json"
ENTRIES_FILENAME: Final[str] = "entries.json"

COMMAND_RM: Final[str] = "rm -f"
COMMAND_LN: Final[str] = "ln -s"
COMMAND_CHOWN: Final[str] = "chown"
COMMAND_CHMOD: Final[str] = "chmod"
COMMAND_CHCON: Final[str] = "chcon"
COMMAND_READLINK: Final[str] = "readlink -e"
COMMAND_MKDIR: Final[str] = "mkdir -p"
COMMAND_TOUCH: Final[str] = "touch"
COMMAND_COPY: Final[str] = "dd"
COMMAND_MOUNT: Final[str] = "mount"

WILDCARD_CHARS: Final[tuple[str, ...]] = ("*",)
