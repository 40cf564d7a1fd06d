"""
Output formatting for resolved templates.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from topopoll.models.templates import Template


def template_to_dict(template: Template) -> dict[str, Any]:
    data: dict[str, Any] = {
        "class": template.name,
        "device": template.device,
        "time": template.time,
        "values": template.values(),
    }
    if template.document is not None:
        data["plugin"] = template.document.name
    return data


def templates_to_json(templates: list[Template]) -> str:
    """Serialize templates as a JSON array."""
    return json.dumps([template_to_dict(t) for t in templates], indent=2)


def print_templates(templates: list[Template], use_json: bool = False, console: Console | None = None) -> None:
    """
    Print templates, one rich table per entity class.

    Args:
        templates: Resolved templates
        use_json: Print JSON instead of tables
        console: Console to print to
    """
    console = console or Console()
    if use_json:
        console.print_json(templates_to_json(templates))
        return

    by_class: dict[str, list[Template]] = {}
    for template in templates:
        by_class.setdefault(template.name, []).append(template)

    for class_name, rows in by_class.items():
        slots = rows[0].slots
        table = Table(title=f"{class_name} ({len(rows)})", show_lines=False)
        for slot in slots:
            table.add_column(slot, overflow="fold")
        for row in rows:
            table.add_row(*[str(row.get_value(slot)) if row.has_value(slot) else "[dim]-[/dim]" for slot in slots])
        console.print(table)
