"""
CLI module for topopoll.

Provides the `topopoll` command-line interface.
"""

from __future__ import annotations

from topopoll.cli.main import app, cli

__all__ = ["app", "cli"]
