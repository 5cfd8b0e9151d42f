from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from hostguard.models import HostsSource


class IStoreRepository(ABC):
    @property
    @abstractmethod
    def root(self) -> Path:
        raise NotImplementedError

    @property
    @abstractmethod
    def store_path(self) -> Path:
        raise NotImplementedError


class ISourceRepository(IStoreRepository):
    @abstractmethod
    def get_enabled(self) -> list[HostsSource]:
        raise NotImplementedError

    @abstractmethod
    def mark_installed(self, now: datetime) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_installed(self) -> None:
        raise NotImplementedError


class IEntryRepository(IStoreRepository):
    @abstractmethod
    def get_enabled_blocked(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def get_enabled_allowed(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def get_enabled_redirects(self) -> list[tuple[str, str]]:
        raise NotImplementedError
