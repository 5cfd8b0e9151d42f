from hostguard.repositories.entries import HostListRepository
from hostguard.repositories.sources import HostsSourceRepository


__all__ = [
    "HostListRepository",
    "HostsSourceRepository",
]
