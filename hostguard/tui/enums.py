from enum import Enum

from hostguard.models import InstallState, ListType


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


INSTALL_STATE_STYLE = {
    InstallState.APPLIED: UIStyle.GREEN.value,
    InstallState.NOT_APPLIED: UIStyle.YELLOW.value,
    InstallState.UNKNOWN: UIStyle.RED.value,
}

LIST_TYPE_STYLE = {
    ListType.BLOCK: UIStyle.RED.value,
    ListType.ALLOW: UIStyle.GREEN.value,
    ListType.REDIRECT: UIStyle.CYAN.value,
}
