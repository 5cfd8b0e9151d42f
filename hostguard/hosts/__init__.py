from hostguard.hosts.allow_filter import AllowFilter, HostMatcher, wildcard_to_regex
from hostguard.hosts.generator import HostsFileGenerator


__all__ = [
    "AllowFilter",
    "HostMatcher",
    "HostsFileGenerator",
    "wildcard_to_regex",
]
