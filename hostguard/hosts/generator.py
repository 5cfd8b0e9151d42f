"""Build the exact content of the installable hosts file."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from hostguard.constants import (
    HEADER_GENERATED,
    HEADER_NOTICE,
    HEADER_SOURCES,
    LINE_SEPARATOR,
    LOCALHOST_HOSTNAME,
    LOCALHOST_IPV4,
    LOCALHOST_IPV6,
)
from hostguard.hosts.allow_filter import AllowFilter
from hostguard.models import HostsConfig, HostsSource
from hostguard.utils import format_timestamp


def loopback_lines() -> list[str]:
    return [
        f"{LOCALHOST_IPV4} {LOCALHOST_HOSTNAME}",
        f"{LOCALHOST_IPV6} {LOCALHOST_HOSTNAME}",
    ]


class HostsFileGenerator:
    """Render hosts file bytes from rule data.

    The output is fully regenerated on every call. Blocked hosts matching any
    allow pattern are dropped; redirects are written verbatim and never pass
    through the allow filter. Duplicates are kept as given.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        line_separator: str = LINE_SEPARATOR,
    ) -> None:
        self.clock = clock or datetime.now
        self.line_separator = line_separator

    def generate(
        self,
        sources: Iterable[HostsSource],
        block_hosts: Iterable[str],
        allow_patterns: Iterable[str],
        redirects: Iterable[tuple[str, str]],
        config: HostsConfig,
    ) -> bytes:
        lines = self.header_lines(sources)
        lines.extend(loopback_lines())

        matcher = AllowFilter.compile(allow_patterns)
        for host in matcher.filter_blocked(block_hosts):
            lines.append(f"{config.redirection_ipv4} {host}")
            if config.enable_ipv6:
                lines.append(f"{config.redirection_ipv6} {host}")

        for host, target in redirects:
            lines.append(f"{host} {target}")

        return self._encode(lines)

    def header_lines(self, sources: Iterable[HostsSource]) -> list[str]:
        lines = [
            f"{HEADER_GENERATED} {format_timestamp(self.clock())}",
            HEADER_NOTICE,
            HEADER_SOURCES,
        ]
        lines.extend(f"# - {source.url}" for source in sources if source.enabled)
        lines.append("")
        return lines

    def default_content(self) -> bytes:
        return self._encode(loopback_lines())

    def _encode(self, lines: list[str]) -> bytes:
        return "".join(line + self.line_separator for line in lines).encode("utf-8")
