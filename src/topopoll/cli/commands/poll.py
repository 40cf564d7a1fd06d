"""
Polling commands: the long-running collector and one-off device probes.
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import Annotated

import typer
from rich.console import Console

from topopoll.cli.factory import build_collector
from topopoll.core.config import Configuration, get_settings
from topopoll.core.exceptions import ConfigurationError, PluginLoadError
from topopoll.formatters.output import print_templates
from topopoll.store.memory import MemoryGraphStore

console = Console()
logger = logging.getLogger(__name__)


def _load_configuration() -> Configuration:
    settings = get_settings()
    try:
        return Configuration.from_settings(settings)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1) from None


def run_collector(
    once: Annotated[
        bool,
        typer.Option("--once", help="Run a single cycle and exit"),
    ] = False,
    wait: Annotated[
        float,
        typer.Option("--wait", help="With --once, seconds to wait for operations to finish"),
    ] = 30.0,
) -> None:
    """
    Poll every configured device, cycle after cycle.

    Example:
        topopoll --config topopoll.yaml run
    """
    settings = get_settings()
    configuration = _load_configuration()
    try:
        collector = build_collector(settings, configuration)
    except (PluginLoadError, ConfigurationError) as e:
        console.print(f"[red]Startup failed: {e}[/red]")
        raise typer.Exit(1) from None

    if once:
        operations = collector.run_cycle()
        console.print(f"Started {len(operations)} capability probes")
        deadline = threading.Event()
        deadline.wait(wait)
        return

    stop = threading.Event()

    def _stop(signum: int, frame: object) -> None:
        logger.info(f"Received signal {signum}, stopping after this cycle")
        stop.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)
    console.print(
        f"Polling {len(configuration.devices())} devices every {configuration.cycle_time_ms() / 1000:.0f}s"
    )
    collector.run(stop)


def probe_device(
    address: Annotated[str, typer.Argument(help="Device address")],
    output_json: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output in JSON format"),
    ] = False,
) -> None:
    """
    Collect one device synchronously and print what was resolved.

    The device must be declared in the configuration file so its
    credentials are known.

    Example:
        topopoll probe 10.0.0.1 --json
    """
    settings = get_settings()
    configuration = _load_configuration()
    if not configuration.credentials_for(address):
        console.print(f"[red]No credentials configured for {address}[/red]")
        raise typer.Exit(1)

    store = MemoryGraphStore()
    try:
        collector = build_collector(settings, configuration, store)
    except (PluginLoadError, ConfigurationError) as e:
        console.print(f"[red]Startup failed: {e}[/red]")
        raise typer.Exit(1) from None

    templates = collector.probe(address)
    if not templates:
        console.print(f"[yellow]{address} did not respond[/yellow]")
        raise typer.Exit(1)

    print_templates(templates, use_json=output_json, console=console)
    if not output_json:
        console.print(f"\n[dim]{len(store)} nodes, {len(store.links())} links[/dim]")
