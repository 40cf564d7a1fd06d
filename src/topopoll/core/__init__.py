"""
Core configuration and exception types for topopoll.
"""

from __future__ import annotations

from topopoll.core.exceptions import TopopollError

__all__ = ["TopopollError"]
