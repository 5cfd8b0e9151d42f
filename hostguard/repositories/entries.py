import logging
from pathlib import Path
from typing import Optional

from hostguard.constants import ENTRIES_FILENAME, WILDCARD_CHARS
from hostguard.errors import InvalidRuleError
from hostguard.models import HostListItem, ListType
from hostguard.repositories.base import IEntryRepository
from hostguard.utils import read_json_safe, write_json


logger = logging.getLogger(__name__)


def validate_item(item: HostListItem) -> None:
    if not item.host or any(char.isspace() for char in item.host):
        raise InvalidRuleError(f"Invalid host: {item.host!r}")
    if item.kind == ListType.REDIRECT:
        if not item.redirection:
            raise InvalidRuleError(f"Redirect entry requires a target: {item.host}")
        if any(char.isspace() for char in item.redirection):
            raise InvalidRuleError(f"Invalid redirect target: {item.redirection!r}")
    elif item.redirection is not None:
        raise InvalidRuleError(
            f"Only redirect entries may carry a target: {item.host}"
        )
    if item.kind != ListType.ALLOW and any(
        char in item.host for char in WILDCARD_CHARS
    ):
        raise InvalidRuleError(
            f"Wildcards are only supported in allow entries: {item.host}"
        )


class HostListRepository(IEntryRepository):
    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root or (Path.home() / ".config" / "hostguard")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def store_path(self) -> Path:
        return self.root / ENTRIES_FILENAME

    def list_items(self) -> list[HostListItem]:
        payload, error = read_json_safe(self.store_path)
        if error is not None:
            logger.warning("Ignoring unreadable entry store %s: %s", self.store_path, error)
            return []
        if not isinstance(payload, list):
            return []

        result: list[HostListItem] = []
        for raw in payload:
            if not isinstance(raw, dict):
                continue
            try:
                item = HostListItem.from_dict(raw)
                validate_item(item)
            except (KeyError, ValueError, InvalidRuleError) as exc:
                logger.debug("Skipping invalid entry %r: %s", raw, exc)
                continue
            result.append(item)
        return result

    def save_items(self, items: list[HostListItem]) -> None:
        write_json(self.store_path, [item.as_dict() for item in items])

    def add_item(
        self,
        host: str,
        kind: ListType,
        redirection: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> HostListItem:
        item = HostListItem(
            host=host.strip(),
            kind=kind,
            redirection=redirection.strip() if redirection is not None else None,
            source_url=source_url,
        )
        validate_item(item)
        items = self.list_items()
        if any(
            other.host == item.host
            and other.kind == kind
            and other.source_url == item.source_url
            for other in items
        ):
            raise InvalidRuleError(f"{kind.value} entry already exists: {item.host}")
        items.append(item)
        self.save_items(items)
        return item

    def remove_item(self, host: str, kind: ListType) -> bool:
        items = self.list_items()
        kept = [
            item for item in items if not (item.host == host and item.kind == kind)
        ]
        if len(kept) == len(items):
            return False
        self.save_items(kept)
        return True

    def set_enabled(self, host: str, kind: ListType, enabled: bool) -> bool:
        items = self.list_items()
        updated: list[HostListItem] = []
        found = False
        for item in items:
            if item.host == host and item.kind == kind:
                item = HostListItem(
                    host=item.host,
                    kind=item.kind,
                    redirection=item.redirection,
                    enabled=enabled,
                    source_url=item.source_url,
                )
                found = True
            updated.append(item)
        if found:
            self.save_items(updated)
        return found

    def _enabled(self, kind: ListType) -> list[HostListItem]:
        return [item for item in self.list_items() if item.enabled and item.kind == kind]

    def get_enabled_blocked(self) -> list[str]:
        return [item.host for item in self._enabled(ListType.BLOCK)]

    def get_enabled_allowed(self) -> list[str]:
        return [item.host for item in self._enabled(ListType.ALLOW)]

    def get_enabled_redirects(self) -> list[tuple[str, str]]:
        return [
            (item.host, item.redirection or "")
            for item in self._enabled(ListType.REDIRECT)
        ]
