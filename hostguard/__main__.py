import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from hostguard.config import DEFAULTS, ConfigRepository
from hostguard.errors import HostsAppError, InstallError
from hostguard.install import InstallOrchestrator
from hostguard.models import ListType
from hostguard.repositories import HostListRepository, HostsSourceRepository
from hostguard.tui import HostsConsoleUI


LIST_TYPE_VALUES = [kind.value for kind in ListType]


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("hostguard")
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        )
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _kind_argument() -> Callable:
    return click.argument(
        "kind", type=click.Choice(LIST_TYPE_VALUES, case_sensitive=False)
    )


def _root(obj: Dict[str, Any]) -> Optional[Path]:
    return obj.get("root")


def _orchestrator(obj: Dict[str, Any]) -> InstallOrchestrator:
    try:
        return InstallOrchestrator.create_default(_root(obj))
    except HostsAppError as exc:
        raise click.ClickException(str(exc))


def _sources(obj: Dict[str, Any]) -> HostsSourceRepository:
    return HostsSourceRepository(ConfigRepository(_root(obj)).root)


def _entries(obj: Dict[str, Any]) -> HostListRepository:
    return HostListRepository(ConfigRepository(_root(obj)).root)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding configuration, rules and staging files.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, root: Optional[Path], verbose: bool) -> None:
    """Generate and install a system-wide hosts redirection file."""
    _configure_logging(verbose)
    ctx.obj = {"root": root.expanduser() if root is not None else None}


@cli.command(help="Generate the hosts file and install it to its target.")
@click.pass_obj
def apply(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    orchestrator = _orchestrator(obj)
    try:
        orchestrator.apply()
    except InstallError as exc:
        ui.render_operation_result("apply", exc)
        raise click.exceptions.Exit(1)
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_operation_result("apply")


@cli.command(help="Restore a default hosts file with loopback entries only.")
@click.pass_obj
def revert(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    orchestrator = _orchestrator(obj)
    try:
        orchestrator.revert()
    except InstallError as exc:
        ui.render_operation_result("revert", exc)
        raise click.exceptions.Exit(1)
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_operation_result("revert")


@cli.command(help="Show install state, target and sources.")
@click.pass_obj
def status(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    orchestrator = _orchestrator(obj)
    try:
        target = orchestrator.config.get_install_target()
        state = orchestrator.probe_state()
        symlink_ok = (
            orchestrator.is_symlink_correct() if target.requires_symlink else None
        )
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_status(state, target, symlink_ok, orchestrator.sources.list_sources())


@cli.command(help="Print the generated hosts file without installing it.")
@click.pass_obj
def preview(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    orchestrator = _orchestrator(obj)
    try:
        content = orchestrator.generate()
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_preview(content)


@cli.group(help="Manage the link from the system hosts path to a custom target.")
def symlink() -> None:
    pass


@symlink.command("create", help="Link the system hosts path to the custom target.")
@click.pass_obj
def symlink_create(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    orchestrator = _orchestrator(obj)
    try:
        orchestrator.create_symlink()
    except InstallError as exc:
        ui.render_operation_result("symlink", exc)
        raise click.exceptions.Exit(1)
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    target = orchestrator.config.get_install_target()
    ui.render_symlink(
        target.path,
        orchestrator.config.get_system_hosts_path(),
        linked=orchestrator.is_symlink_correct(),
    )


@symlink.command("check", help="Check whether the system hosts path links to the target.")
@click.pass_obj
def symlink_check(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    orchestrator = _orchestrator(obj)
    try:
        target = orchestrator.config.get_install_target()
        linked = orchestrator.is_symlink_correct()
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_symlink(
        target.path, orchestrator.config.get_system_hosts_path(), linked=linked
    )
    if not linked:
        raise click.exceptions.Exit(1)


@cli.group(help="Manage hosts sources listed in the generated file.")
def sources() -> None:
    pass


@sources.command("list", help="List hosts sources.")
@click.pass_obj
def sources_list(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    ui.render_sources(_sources(obj).list_sources())


@sources.command("add", help="Add a hosts source URL.")
@click.argument("url")
@click.pass_obj
def sources_add(obj: Dict[str, Any], url: str) -> None:
    ui = HostsConsoleUI(Console())
    try:
        source = _sources(obj).add_source(url)
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_saved("source", f"Source added: [bold]{escape(source.url)}[/bold]")


@sources.command("remove", help="Remove a hosts source URL.")
@click.argument("url")
@click.pass_obj
def sources_remove(obj: Dict[str, Any], url: str) -> None:
    ui = HostsConsoleUI(Console())
    if not _sources(obj).remove_source(url):
        raise click.ClickException(f"Source not found: {url}")
    ui.render_saved("source", f"Source removed: [bold]{escape(url)}[/bold]", removed=True)


def _toggle_source(obj: Dict[str, Any], url: str, enabled: bool) -> None:
    ui = HostsConsoleUI(Console())
    repository = _sources(obj)
    if not repository.set_enabled(url, enabled):
        raise click.ClickException(f"Source not found: {url}")
    ui.render_sources(repository.list_sources())


@sources.command("enable", help="Enable a hosts source.")
@click.argument("url")
@click.pass_obj
def sources_enable(obj: Dict[str, Any], url: str) -> None:
    _toggle_source(obj, url, True)


@sources.command("disable", help="Disable a hosts source.")
@click.argument("url")
@click.pass_obj
def sources_disable(obj: Dict[str, Any], url: str) -> None:
    _toggle_source(obj, url, False)


@cli.group(help="Manage block, allow and redirect rules.")
def rules() -> None:
    pass


@rules.command("list", help="List rules.")
@click.pass_obj
def rules_list(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    ui.render_rules(_entries(obj).list_items())


def _add_rule(
    obj: Dict[str, Any], host: str, kind: ListType, redirection: Optional[str] = None
) -> None:
    ui = HostsConsoleUI(Console())
    try:
        item = _entries(obj).add_item(host, kind, redirection=redirection)
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    suffix = f" -> {item.redirection}" if item.redirection else ""
    ui.render_saved("rule", f"{kind.value} rule added: [bold]{escape(item.host)}[/bold]{escape(suffix)}")


@rules.command("block", help="Block a host.")
@click.argument("host")
@click.pass_obj
def rules_block(obj: Dict[str, Any], host: str) -> None:
    _add_rule(obj, host, ListType.BLOCK)


@rules.command("allow", help="Exempt hosts matching a wildcard pattern from blocking.")
@click.argument("pattern")
@click.pass_obj
def rules_allow(obj: Dict[str, Any], pattern: str) -> None:
    _add_rule(obj, pattern, ListType.ALLOW)


@rules.command("redirect", help="Redirect a host to a target.")
@click.argument("host")
@click.argument("target")
@click.pass_obj
def rules_redirect(obj: Dict[str, Any], host: str, target: str) -> None:
    _add_rule(obj, host, ListType.REDIRECT, redirection=target)


@rules.command("remove", help="Remove a rule.")
@_kind_argument()
@click.argument("host")
@click.pass_obj
def rules_remove(obj: Dict[str, Any], kind: str, host: str) -> None:
    ui = HostsConsoleUI(Console())
    if not _entries(obj).remove_item(host, ListType(kind.lower())):
        raise click.ClickException(f"Rule not found: {kind} {host}")
    ui.render_saved("rule", f"{kind} rule removed: [bold]{escape(host)}[/bold]", removed=True)


def _toggle_rule(obj: Dict[str, Any], kind: str, host: str, enabled: bool) -> None:
    ui = HostsConsoleUI(Console())
    repository = _entries(obj)
    if not repository.set_enabled(host, ListType(kind.lower()), enabled):
        raise click.ClickException(f"Rule not found: {kind} {host}")
    ui.render_rules(repository.list_items())


@rules.command("enable", help="Enable a rule.")
@_kind_argument()
@click.argument("host")
@click.pass_obj
def rules_enable(obj: Dict[str, Any], kind: str, host: str) -> None:
    _toggle_rule(obj, kind, host, True)


@rules.command("disable", help="Disable a rule.")
@_kind_argument()
@click.argument("host")
@click.pass_obj
def rules_disable(obj: Dict[str, Any], kind: str, host: str) -> None:
    _toggle_rule(obj, kind, host, False)


@cli.group(help="Show or change configuration.")
def config() -> None:
    pass


@config.command("show", help="Show the effective configuration.")
@click.pass_obj
def config_show(obj: Dict[str, Any]) -> None:
    ui = HostsConsoleUI(Console())
    repository = ConfigRepository(_root(obj))
    try:
        ui.render_config(repository.load(), str(repository.config_path))
    except HostsAppError as exc:
        raise click.ClickException(str(exc))


@config.command("set", help="Set a configuration value.")
@click.argument("key", type=click.Choice(sorted(DEFAULTS)))
@click.argument("value")
@click.pass_obj
def config_set(obj: Dict[str, Any], key: str, value: str) -> None:
    ui = HostsConsoleUI(Console())
    repository = ConfigRepository(_root(obj))
    try:
        saved = repository.set(key, value)
    except HostsAppError as exc:
        raise click.ClickException(str(exc))
    ui.render_saved("config", f"[bold]{key}[/bold] = {escape(repr(saved))}")


def main() -> int:
    try:
        # Without standalone mode click returns the code of an Exit instead of raising it.
        code = cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    return code if isinstance(code, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
