from typing import Iterable, Optional

from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from hostguard.tui.enums import UIStyle


class UISection:
    @staticmethod
    def wrap(
        title: str,
        body: RenderableType,
        style: str = UIStyle.BLUE.value,
        subtitle: Optional[str] = None,
    ) -> Panel:
        return Panel(body, title=title, subtitle=subtitle, border_style=style, padding=(0, 1))

    @staticmethod
    def note(title: str, body: str, style: str) -> Panel:
        return Panel(body, title=title, border_style=style, padding=(0, 1))

    @staticmethod
    def outcome(title: str, lines: Iterable[str], ok: bool) -> Panel:
        """Panel for an install operation result; ``lines`` are printed literally."""
        style = UIStyle.GREEN.value if ok else UIStyle.RED.value
        body = Text("\n".join(lines))
        return Panel(body, title=title, border_style=style, padding=(0, 1))
