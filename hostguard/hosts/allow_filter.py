"""Allow-list wildcard matching over blocked hosts."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern

_PARALLEL_THRESHOLD = 2048
_CHUNK_SIZE = 1024


def wildcard_to_regex(pattern: str) -> str:
    """Translate an allow-list wildcard into an unanchored regular expression.

    ``*`` matches any (possibly empty) substring, every other character is
    literal.
    """
    return ".*".join(re.escape(part) for part in pattern.split("*"))


@dataclass(frozen=True)
class HostMatcher:
    patterns: tuple[Pattern[str], ...]

    def is_allowed(self, host: str) -> bool:
        return any(pattern.search(host) is not None for pattern in self.patterns)

    def filter_blocked(
        self, hosts: Iterable[str], max_workers: Optional[int] = None
    ) -> list[str]:
        hosts = list(hosts)
        if not self.patterns:
            return hosts
        if len(hosts) < _PARALLEL_THRESHOLD:
            return [host for host in hosts if not self.is_allowed(host)]

        chunks = [
            hosts[start : start + _CHUNK_SIZE]
            for start in range(0, len(hosts), _CHUNK_SIZE)
        ]
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            kept = pool.map(self._keep_blocked, chunks)
        return [host for chunk in kept for host in chunk]

    def _keep_blocked(self, hosts: list[str]) -> list[str]:
        return [host for host in hosts if not self.is_allowed(host)]


class AllowFilter:
    @staticmethod
    def compile(allow_hosts: Iterable[str]) -> HostMatcher:
        return HostMatcher(
            patterns=tuple(
                re.compile(wildcard_to_regex(host)) for host in allow_hosts if host
            )
        )
