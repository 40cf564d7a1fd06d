"""
Main CLI entry point for topopoll.

Provides the `topopoll` command with subcommands for:
- run: Poll every configured device, cycle after cycle
- probe: Collect one device and print the result
- plugins: Inspect plugin documents
- config: Show configuration
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from topopoll import __version__
from topopoll.cli.commands import config, plugins, poll
from topopoll.core.config import get_settings

# Main CLI app
app = typer.Typer(
    name="topopoll",
    help="SNMP topology collector",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Rich console for formatted output
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"topopoll version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            "-d",
            envvar="TOPOPOLL_DEBUG",
            help="Enable debug output",
        ),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file",
        ),
    ] = None,
) -> None:
    """
    topopoll - SNMP topology collector.

    Polls devices over SNMP, extracts devices, interfaces and LLDP
    neighbours with per-vendor plugin documents, and writes them to a
    graph store.
    """
    settings = get_settings()
    if debug:
        settings.debug = True
    if config_file is not None:
        settings.config_file = config_file

    # Configure logging
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=settings.debug, rich_tracebacks=True)],
    )


# Register command groups
app.add_typer(plugins.app, name="plugins", help="Inspect plugin documents")
app.add_typer(config.app, name="config", help="Show configuration")

app.command("run")(poll.run_collector)
app.command("probe")(poll.probe_device)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]topopoll[/bold] version {__version__}")


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
