from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from hostguard.errors import InstallError
from hostguard.models import (
    STATUS_MESSAGES,
    HostListItem,
    HostsSource,
    InstallState,
    InstallTarget,
)
from hostguard.tui.enums import UIStyle
from hostguard.tui.sections import UISection
from hostguard.tui.tables import ConfigTable, RulesTable, SourcesTable, StatusTable
from hostguard.utils import compact_home_path, compact_home_paths_in_text


class HostsConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_status(
        self,
        state: InstallState,
        target: InstallTarget,
        symlink_ok: Optional[bool],
        sources: list[HostsSource],
    ) -> None:
        self.console.print(
            UISection.wrap(
                "hosts file",
                StatusTable.summary_block(state, target, symlink_ok),
                style=UIStyle.BLUE.value,
            )
        )
        self.render_sources(sources)

    def render_operation_result(
        self, operation: str, error: Optional[InstallError] = None
    ) -> None:
        if error is None:
            self.console.print(
                UISection.outcome(operation, [f"Hosts file {operation} succeeded."], ok=True)
            )
            return

        lines = [STATUS_MESSAGES[error.kind]]
        detail = error.detail or (str(error.cause) if error.cause is not None else "")
        if detail:
            lines.append(f"- {compact_home_paths_in_text(detail)}")
        self.console.print(
            UISection.outcome(f"{operation} failed ({error.kind.value})", lines, ok=False)
        )

    def render_symlink(self, target: str, system_path: str, linked: bool) -> None:
        if linked:
            body = f"{escape(system_path)} -> {escape(target)}"
            style = UIStyle.GREEN.value
        else:
            body = (
                f"{escape(system_path)} does not link to {escape(target)}\n"
                "- hostguard symlink create"
            )
            style = UIStyle.YELLOW.value
        self.console.print(UISection.note("symlink", body, style=style))

    def render_sources(self, sources: list[HostsSource]) -> None:
        if not sources:
            self.console.print(
                UISection.note("sources", "No sources configured.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "sources", SourcesTable.sources_table(sources), style=UIStyle.CYAN.value
            )
        )

    def render_rules(self, items: list[HostListItem]) -> None:
        self.console.print(
            UISection.wrap(
                "rules overview", RulesTable.summary_block(items), style=UIStyle.BLUE.value
            )
        )
        if not items:
            self.console.print(
                UISection.note("rules", "No rules configured.", style=UIStyle.DIM.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "rules", RulesTable.rules_table(items), style=UIStyle.MAGENTA.value
            )
        )

    def render_config(self, config: dict[str, Any], path: str) -> None:
        self.console.print(
            UISection.wrap(
                "config",
                ConfigTable.config_table(config),
                style=UIStyle.BLUE.value,
                subtitle=escape(compact_home_path(path)),
            )
        )

    def render_preview(self, content: bytes) -> None:
        self.console.print(Text(content.decode("utf-8")), end="")

    def render_saved(self, title: str, message: str, removed: bool = False) -> None:
        border_style = UIStyle.YELLOW.value if removed else UIStyle.GREEN.value
        self.console.print(UISection.note(title, message, style=border_style))
