"""
Configuration commands.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from topopoll.core.config import Configuration, get_settings
from topopoll.core.exceptions import ConfigurationError

app = typer.Typer(help="Show configuration")
console = Console()


@app.command("show")
def show_config() -> None:
    """Show settings and the parsed configuration file."""
    settings = get_settings()

    console.print("\n[bold cyan]Settings[/bold cyan]")
    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")
    table.add_row("Config file", str(settings.config_file))
    table.add_row("Plugins directory", str(settings.plugins_dir or "[dim]bundled[/dim]"))
    table.add_row("Default plugin", settings.default_plugin)
    table.add_row("MIB directory", str(settings.mibs_dir or "[dim]Not set[/dim]"))
    table.add_row("Symbols file", str(settings.symbols_file or "[dim]Not set[/dim]"))
    table.add_row("Graph store", settings.store_url or "[dim]in memory[/dim]")
    table.add_row("Debug mode", str(settings.debug))
    table.add_row("Log level", settings.log_level)
    console.print(table)

    try:
        configuration = Configuration.from_settings(settings)
    except ConfigurationError as e:
        console.print(f"\n[red]✗ {e}[/red]")
        raise typer.Exit(1) from None

    snmp = configuration.snmp
    console.print("\n[bold cyan]SNMP[/bold cyan]")
    snmp_table = Table(show_header=False, box=None)
    snmp_table.add_column("Setting", style="dim")
    snmp_table.add_column("Value")
    snmp_table.add_row("Cycle time", f"{snmp.cycle_time_ms} ms")
    snmp_table.add_row("Max request size", str(snmp.max_request_size))
    snmp_table.add_row("Max walk rounds", str(snmp.max_walk_rounds))
    snmp_table.add_row("Timeout", f"{snmp.timeout}s")
    snmp_table.add_row("Retries", str(snmp.retries))
    snmp_table.add_row("Port", str(snmp.port))
    console.print(snmp_table)

    devices = configuration.devices()
    console.print(f"\n[green]✓ {len(devices)} devices configured[/green]")
    for address in devices[:20]:
        credentials = configuration.credentials_for(address)
        versions = ", ".join(f"v{c.version}" for c in credentials) or "[yellow]none[/yellow]"
        console.print(f"  {address}  [dim]{versions}[/dim]")
    if len(devices) > 20:
        console.print(f"  [dim]... and {len(devices) - 20} more[/dim]")
