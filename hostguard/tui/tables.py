from collections import Counter
from typing import Any

from rich.markup import escape
from rich.table import Column, Table

from hostguard.models import (
    HostListItem,
    HostsSource,
    InstallState,
    InstallTarget,
    ListType,
)
from hostguard.tui.enums import INSTALL_STATE_STYLE, LIST_TYPE_STYLE, UIStyle
from hostguard.utils import compact_home_path


def _styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"


class StatusTable:
    @staticmethod
    def summary_block(
        state: InstallState, target: InstallTarget, symlink_ok: bool | None
    ) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        style = INSTALL_STATE_STYLE.get(state, UIStyle.WHITE.value)
        table.add_row("State", _styled(state.value, style))
        table.add_row("Target", escape(target.path))
        if symlink_ok is None:
            table.add_row("Symlink", _styled("not required", UIStyle.DIM.value))
        elif symlink_ok:
            table.add_row("Symlink", _styled("linked", UIStyle.GREEN.value))
        else:
            table.add_row("Symlink", _styled("missing", UIStyle.RED.value))
        return table


class SourcesTable:
    @staticmethod
    def sources_table(sources: list[HostsSource]) -> Table:
        table = Table(
            Column(header="Source", overflow="fold"),
            Column(header="Status", width=10),
            Column(header="Installed", width=20),
            expand=True,
            header_style="bold",
        )
        for source in sources:
            status = (
                _styled("enabled", UIStyle.GREEN.value)
                if source.enabled
                else _styled("disabled", UIStyle.DIM.value)
            )
            installed = (
                source.last_installed_at.isoformat(sep=" ", timespec="seconds")
                if source.last_installed_at is not None
                else "-"
            )
            table.add_row(escape(source.url), status, installed)
        return table


class RulesTable:
    @staticmethod
    def summary_block(items: list[HostListItem]) -> Table:
        counts = Counter(item.kind.value for item in items if item.enabled)
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        for kind in ListType:
            table.add_row(kind.value, str(counts.get(kind.value, 0)))
        return table

    @staticmethod
    def rules_table(items: list[HostListItem]) -> Table:
        table = Table(
            Column(header="Type", width=10),
            Column(header="Host", overflow="fold"),
            Column(header="Redirection", overflow="ellipsis", max_width=40),
            Column(header="Status", width=10),
            expand=True,
            header_style="bold",
        )
        for item in items:
            style = LIST_TYPE_STYLE.get(item.kind, UIStyle.WHITE.value)
            table.add_row(
                _styled(item.kind.value, style),
                escape(item.host),
                escape(item.redirection or ""),
                "enabled" if item.enabled else _styled("disabled", UIStyle.DIM.value),
            )
        return table


class ConfigTable:
    @staticmethod
    def config_table(config: dict[str, Any]) -> Table:
        table = Table(
            Column(header="Key", width=20),
            Column(header="Value", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        for key in sorted(config):
            value = config[key]
            if value is None:
                table.add_row(key, _styled("unset", UIStyle.DIM.value))
                continue
            if isinstance(value, list):
                value = " ".join(str(part) for part in value)
            table.add_row(key, escape(compact_home_path(str(value))))
        return table
