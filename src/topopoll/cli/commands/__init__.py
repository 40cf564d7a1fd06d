"""
CLI command modules for topopoll.
"""

from __future__ import annotations

from topopoll.cli.commands import config, plugins, poll

__all__ = ["config", "plugins", "poll"]
