"""Output formatting for the CLI."""

from __future__ import annotations

from topopoll.formatters.output import print_templates, templates_to_json

__all__ = ["print_templates", "templates_to_json"]
