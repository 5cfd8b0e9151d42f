from hostguard.tui.renderers import HostsConsoleUI


__all__ = ["HostsConsoleUI"]
