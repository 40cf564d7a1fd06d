"""
Plugin document commands.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from topopoll.cli.factory import build_plugin_store
from topopoll.core.config import get_settings
from topopoll.core.exceptions import PluginLoadError
from topopoll.plugins.store import PluginStore

app = typer.Typer(help="Inspect plugin documents")
console = Console()


def _store() -> PluginStore:
    try:
        return build_plugin_store(get_settings())
    except PluginLoadError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None


@app.command("list")
def list_plugins() -> None:
    """List loaded plugin documents."""
    store = _store()
    table = Table(title="Plugin documents")
    table.add_column("Name", style="cyan")
    table.add_column("Capability pattern")
    table.add_column("Classes")
    table.add_column("Source", style="dim")

    for document in store.documents:
        pattern = "[dim](default)[/dim]" if document.is_default else document.pattern.pattern
        table.add_row(
            document.name,
            pattern,
            ", ".join(sorted(document.classes)),
            str(document.source or ""),
        )
    console.print(table)


@app.command("select")
def select_plugin(
    object_id: Annotated[str, typer.Argument(help="Reported sysObjectID, e.g. 1.3.6.1.4.1.9.1.1208")],
) -> None:
    """Show which document a device reporting OBJECT_ID would use."""
    document = _store().select_document(object_id)
    console.print(f"{object_id} -> [bold]{document.name}[/bold]")
