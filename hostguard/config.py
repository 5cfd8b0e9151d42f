"""YAML-backed configuration validated against a JSON schema."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from jsonschema import Draft202012Validator

from hostguard.constants import (
    CONFIG_FILENAME,
    DEFAULT_CUSTOM_TARGET,
    LOCALHOST_IPV4,
    LOCALHOST_IPV6,
    SYSTEM_HOSTS_PATH,
)
from hostguard.errors import InvalidConfigFormatError, InvalidConfigSchemaError
from hostguard.models import HostsConfig, InstallLocation, InstallTarget


logger = logging.getLogger(__name__)

_TARGET_PATH = {"type": "string", "minLength": 1, "pattern": "^/.*[^/]$"}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "install_location": {"enum": [item.value for item in InstallLocation]},
        "custom_target": _TARGET_PATH,
        "system_hosts_path": _TARGET_PATH,
        "redirection_ipv4": {"type": "string", "minLength": 1},
        "redirection_ipv6": {"type": "string", "minLength": 1},
        "enable_ipv6": {"type": "boolean"},
        "privilege_command": {"type": "array", "items": {"type": "string"}},
        "owner": {"type": "string", "pattern": r"^[\w.-]+(:[\w.-]+)?$"},
        "file_mode": {"type": "string", "pattern": "^[0-7]{3,4}$"},
        "security_context": {"type": ["string", "null"]},
        "mounts_file": {"type": "string", "minLength": 1},
    },
}

DEFAULTS: dict[str, Any] = {
    "install_location": InstallLocation.SYSTEM.value,
    "custom_target": DEFAULT_CUSTOM_TARGET,
    "system_hosts_path": SYSTEM_HOSTS_PATH,
    "redirection_ipv4": LOCALHOST_IPV4,
    "redirection_ipv6": LOCALHOST_IPV6,
    "enable_ipv6": False,
    "privilege_command": ["sudo", "-n"],
    "owner": "0:0",
    "file_mode": "644",
    "security_context": None,
    "mounts_file": "/proc/mounts",
}


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


class ConfigRepository:
    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root or (Path.home() / ".config" / "hostguard")
        self._validator = Draft202012Validator(CONFIG_SCHEMA)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    def load(self) -> dict[str, Any]:
        payload = self._load_raw()
        merged = dict(DEFAULTS)
        merged.update(payload)
        return merged

    def get(self, key: str) -> Any:
        if key not in DEFAULTS:
            raise KeyError(f"Unknown config key: {key}")
        return self.load()[key]

    def set(self, key: str, raw_value: Any) -> Any:
        if key not in DEFAULTS:
            raise KeyError(f"Unknown config key: {key}")
        payload = self._load_raw()
        payload[key] = self._coerce(key, raw_value)
        self._validate(payload)
        self.root.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(
            yaml.safe_dump(payload, default_flow_style=False, sort_keys=True),
            encoding="utf-8",
        )
        logger.debug("Saved config key %s=%r", key, payload[key])
        return payload[key]

    def get_install_target(self) -> InstallTarget:
        config = self.load()
        system_path = config["system_hosts_path"]
        if config["install_location"] == InstallLocation.CUSTOM.value:
            target = config["custom_target"]
        else:
            target = system_path
        return InstallTarget(path=target, requires_symlink=target != system_path)

    def get_system_hosts_path(self) -> str:
        return self.get("system_hosts_path")

    def get_redirection_addresses(self) -> tuple[str, str]:
        config = self.load()
        return config["redirection_ipv4"], config["redirection_ipv6"]

    def ipv6_enabled(self) -> bool:
        return bool(self.get("enable_ipv6"))

    def hosts_config(self) -> HostsConfig:
        ipv4, ipv6 = self.get_redirection_addresses()
        return HostsConfig(
            redirection_ipv4=ipv4,
            redirection_ipv6=ipv6,
            enable_ipv6=self.ipv6_enabled(),
        )

    def _load_raw(self) -> dict[str, Any]:
        if not self.config_path.exists():
            return {}
        try:
            payload = yaml.safe_load(self.config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise InvalidConfigFormatError(self.config_path, str(exc)) from exc
        if payload is None:
            return {}
        self._validate(payload)
        return payload

    def _validate(self, payload: Any) -> None:
        errors = sorted(
            self._validator.iter_errors(payload),
            key=lambda error: [str(part) for part in error.path],
        )
        if errors:
            raise InvalidConfigSchemaError(
                self.config_path, format_schema_error(errors[0])
            )

    @staticmethod
    def _coerce(key: str, raw_value: Any) -> Any:
        if not isinstance(raw_value, str):
            return raw_value
        default = DEFAULTS[key]
        if isinstance(default, bool):
            lowered = raw_value.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            return raw_value
        if isinstance(default, list):
            return raw_value.split()
        if key == "security_context" and raw_value.strip().lower() in ("", "none", "null"):
            return None
        return raw_value
