import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from hostguard.constants import SOURCES_FILENAME
from hostguard.errors import InvalidRuleError
from hostguard.models import HostsSource
from hostguard.repositories.base import ISourceRepository
from hostguard.utils import read_json_safe, write_json


logger = logging.getLogger(__name__)


class HostsSourceRepository(ISourceRepository):
    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root or (Path.home() / ".config" / "hostguard")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def store_path(self) -> Path:
        return self.root / SOURCES_FILENAME

    def list_sources(self) -> list[HostsSource]:
        payload, error = read_json_safe(self.store_path)
        if error is not None:
            logger.warning("Ignoring unreadable source store %s: %s", self.store_path, error)
            return []
        if not isinstance(payload, list):
            return []

        result: list[HostsSource] = []
        seen: set[str] = set()
        for item in payload:
            if not isinstance(item, dict) or not isinstance(item.get("url"), str):
                continue
            try:
                source = HostsSource.from_dict(item)
            except ValueError:
                continue
            if source.url in seen:
                continue
            result.append(source)
            seen.add(source.url)
        return result

    def save_sources(self, sources: list[HostsSource]) -> None:
        write_json(self.store_path, [source.as_dict() for source in sources])

    def get_enabled(self) -> list[HostsSource]:
        return [source for source in self.list_sources() if source.enabled]

    def add_source(self, url: str) -> HostsSource:
        normalized = url.strip()
        if not normalized:
            raise InvalidRuleError("Source URL cannot be empty")
        sources = self.list_sources()
        if any(item.url == normalized for item in sources):
            raise InvalidRuleError(f"Source already exists: {normalized}")
        source = HostsSource(url=normalized)
        sources.append(source)
        self.save_sources(sources)
        return source

    def remove_source(self, url: str) -> bool:
        sources = self.list_sources()
        kept = [item for item in sources if item.url != url.strip()]
        if len(kept) == len(sources):
            return False
        self.save_sources(kept)
        return True

    def set_enabled(self, url: str, enabled: bool) -> bool:
        sources = self.list_sources()
        updated: list[HostsSource] = []
        found = False
        for item in sources:
            if item.url == url.strip():
                item = HostsSource(
                    url=item.url,
                    enabled=enabled,
                    last_installed_at=item.last_installed_at,
                )
                found = True
            updated.append(item)
        if found:
            self.save_sources(updated)
        return found

    def mark_installed(self, now: datetime) -> None:
        self.save_sources(
            [
                item.with_installed_at(now) if item.enabled else item
                for item in self.list_sources()
            ]
        )

    def clear_installed(self) -> None:
        self.save_sources(
            [item.with_installed_at(None) for item in self.list_sources()]
        )
