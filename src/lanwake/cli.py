"""Command-line interface for lanwake."""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click

from lanwake import __version__

if TYPE_CHECKING:
    from lanwake.config.loader import AppSettings
    from lanwake.core.hosts import HostRecord

DEFAULT_CONFIG = Path.home() / ".config" / "lanwake" / "config.yaml"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings(config: str) -> "AppSettings":
    from lanwake.config.loader import (
        ConfigError,
        load_config,
        settings_from_config,
        validate_settings,
    )

    path = Path(config)
    raw = None
    if path.exists():
        raw = load_config(path) or {}
        errors = validate_settings(raw)
        if errors:
            click.echo("Config validation errors:", err=True)
            for e in errors:
                click.echo(f"  • {e}", err=True)
            sys.exit(1)
    try:
        return settings_from_config(raw, path)
    except ConfigError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _load_hosts(config: str) -> tuple["AppSettings", list["HostRecord"]]:
    from lanwake.config.loader import HostFileError, load_hosts

    settings = _load_settings(config)
    try:
        return settings, load_hosts(settings.hosts_file)
    except HostFileError as exc:
        click.echo(f"Host list error: {exc}", err=True)
        sys.exit(1)


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="lanwake")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="LANWAKE_CONFIG",
    show_default=True,
    help="Path to lanwake config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """lanwake: wake hosts on your LAN and check whether they are up."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── hosts group ───────────────────────────────────────────────────────────────


@main.group()
def hosts() -> None:
    """Inspect the configured host list."""


@hosts.command("list")
@click.pass_context
def hosts_list(ctx: click.Context) -> None:
    """List all configured hosts in check order."""
    _, records = _load_hosts(ctx.obj["config"])
    if not records:
        click.echo("No hosts configured.")
        return
    click.echo(f"{'#':<4} {'MAC':<19} {'HOST':<28} {'CIDR':<5} {'PORT':<6} COMMENT")
    click.echo("─" * 80)
    for i, h in enumerate(records, start=1):
        cidr = "" if h.cidr is None else str(h.cidr)
        port = "" if h.port is None else str(h.port)
        click.echo(f"{i:<4} {h.mac:<19} {h.host:<28} {cidr:<5} {port:<6} {h.comment}")


# ── wake command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("target")
@click.option("--host", "-H", "host_opt", help="Wake TARGET (a MAC address) via this host/IP")
@click.option("--cidr", default="", help="Subnet prefix length; sends to the subnet broadcast")
@click.option("--port", "-p", default="", help="UDP port (default from settings)")
@click.option("--debug", is_flag=True, help="Print the step-by-step send trace")
@click.pass_context
def wake(
    ctx: click.Context,
    target: str,
    host_opt: Optional[str],
    cidr: str,
    port: str,
    debug: bool,
) -> None:
    """Send a Wake-on-LAN packet.

    TARGET is a 1-based position, MAC address or host name from the host
    list, or a MAC address when --host is given.
    """
    from lanwake.core.magic import DebugTrace, send_wake
    from lanwake.core.result import Err

    if host_opt:
        settings = _load_settings(ctx.obj["config"])
        mac, host = target, host_opt
    else:
        settings, records = _load_hosts(ctx.obj["config"])
        if target.isdigit() and 1 <= int(target) <= len(records):
            match = records[int(target) - 1]
        else:
            wanted = target.upper().replace(":", "-")
            match = next(
                (
                    h
                    for h in records
                    if h.host == target or h.mac.upper().replace(":", "-") == wanted
                ),
                None,
            )
        if match is None:
            click.echo(f"Host '{target}' not found in host list.", err=True)
            sys.exit(1)
        mac, host = match.mac, match.host
        cidr = cidr or ("" if match.cidr is None else str(match.cidr))
        port = port or ("" if match.port is None else str(match.port))

    trace = DebugTrace()
    result = send_wake(mac, host, cidr, port, default_port=settings.default_port, trace=trace)
    if debug:
        for line in trace.lines:
            click.echo(f"  {line}")
    if isinstance(result, Err):
        click.echo(f"✗  {result.error}", err=True)
        sys.exit(2)
    sent = result.value
    click.echo(f"✓  Magic packet sent for {sent.mac} to {sent.address}:{sent.port}")


# ── check command ────────────────────────────────────────────────────────────


@main.command()
@click.argument("host")
@click.pass_context
def check(ctx: click.Context, host: str) -> None:
    """Check whether HOST answers on a well-known service port."""
    from lanwake.core.probe import check_host, is_checkable_host

    if not is_checkable_host(host):
        click.echo(f"Invalid host: {host}", err=True)
        sys.exit(1)
    settings = _load_settings(ctx.obj["config"])
    click.echo(f"Checking {host}…")
    result = check_host(host, timeout=settings.probe_timeout)
    if result.is_up:
        click.echo(f"✓  {host} is up ({result.info})")
        return
    click.echo(
        f"✗  {host} is down (port {result.error_port}: {result.err_code} {result.err_str})",
        err=True,
    )
    sys.exit(3)


# ── serve command ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind host")
@click.option("--port", default=8000, show_default=True, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the lanwake API server."""
    import uvicorn

    from lanwake.api.routes import create_app
    from lanwake.config.loader import ConfigError

    try:
        app = create_app(config_path=ctx.obj["config"])
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Starting lanwake at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
