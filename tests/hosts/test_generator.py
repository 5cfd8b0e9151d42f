from datetime import datetime

from hostguard.constants import HEADER_GENERATED, HEADER_NOTICE, HEADER_SOURCES
from hostguard.hosts import HostsFileGenerator
from hostguard.models import HostsConfig, HostsSource


FIXED = datetime(2024, 5, 17, 9, 30, 0)


def _generator() -> HostsFileGenerator:
    return HostsFileGenerator(clock=lambda: FIXED, line_separator="\n")


def _lines(content: bytes) -> list[str]:
    text = content.decode("utf-8")
    assert text.endswith("\n")
    return text[:-1].split("\n")


def test_generate_writes_header_sources_and_loopback() -> None:
    content = _generator().generate(
        sources=[
            HostsSource("https://lists.example.org/hosts"),
            HostsSource("https://disabled.example.org/hosts", enabled=False),
        ],
        block_hosts=[],
        allow_patterns=[],
        redirects=[],
        config=HostsConfig(),
    )

    assert _lines(content) == [
        f"{HEADER_GENERATED} 2024-05-17 09:30:00",
        HEADER_NOTICE,
        HEADER_SOURCES,
        "# - https://lists.example.org/hosts",
        "",
        "127.0.0.1 localhost",
        "::1 localhost",
    ]


def test_generate_is_deterministic_for_a_fixed_clock() -> None:
    kwargs = dict(
        sources=[HostsSource("https://lists.example.org/hosts")],
        block_hosts=["ads.example.net", "tracker.example.net"],
        allow_patterns=["tracker*"],
        redirects=[("intranet.example", "10.0.0.5")],
        config=HostsConfig(enable_ipv6=True),
    )

    assert _generator().generate(**kwargs) == _generator().generate(**kwargs)


def test_allow_pattern_drops_matching_blocked_hosts() -> None:
    content = _generator().generate(
        sources=[],
        block_hosts=["a.com", "ads.example.com"],
        allow_patterns=["*example*"],
        redirects=[],
        config=HostsConfig(),
    )

    lines = _lines(content)
    assert lines[-1] == "127.0.0.1 a.com"
    assert not any("ads.example.com" in line for line in lines)


def test_ipv6_lines_follow_each_ipv4_line_when_enabled() -> None:
    config = HostsConfig(
        redirection_ipv4="0.0.0.0", redirection_ipv6="::", enable_ipv6=True
    )
    content = _generator().generate(
        sources=[],
        block_hosts=["a.com", "b.com"],
        allow_patterns=[],
        redirects=[],
        config=config,
    )

    assert _lines(content)[-4:] == [
        "0.0.0.0 a.com",
        ":: a.com",
        "0.0.0.0 b.com",
        ":: b.com",
    ]


def test_ipv6_lines_are_omitted_when_disabled() -> None:
    content = _generator().generate(
        sources=[],
        block_hosts=["a.com"],
        allow_patterns=[],
        redirects=[],
        config=HostsConfig(redirection_ipv6="::", enable_ipv6=False),
    )

    assert ":: a.com" not in _lines(content)


def test_redirects_bypass_the_allow_filter() -> None:
    content = _generator().generate(
        sources=[],
        block_hosts=["mail.example.com"],
        allow_patterns=["mail*"],
        redirects=[("mail.example.com", "192.168.1.20")],
        config=HostsConfig(),
    )

    lines = _lines(content)
    assert "127.0.0.1 mail.example.com" not in lines
    assert lines[-1] == "mail.example.com 192.168.1.20"


def test_duplicate_blocked_hosts_are_kept() -> None:
    content = _generator().generate(
        sources=[],
        block_hosts=["a.com", "a.com"],
        allow_patterns=[],
        redirects=[],
        config=HostsConfig(),
    )

    assert _lines(content).count("127.0.0.1 a.com") == 2


def test_every_line_is_terminated_with_the_separator() -> None:
    generator = HostsFileGenerator(clock=lambda: FIXED, line_separator="\r\n")

    content = generator.generate(
        sources=[], block_hosts=["a.com"], allow_patterns=[], redirects=[],
        config=HostsConfig(),
    )

    text = content.decode("utf-8")
    assert text.endswith("127.0.0.1 a.com\r\n")
    assert "\n" not in text.replace("\r\n", "")


def test_default_content_is_loopback_only() -> None:
    assert _generator().default_content() == b"127.0.0.1 localhost\n::1 localhost\n"
