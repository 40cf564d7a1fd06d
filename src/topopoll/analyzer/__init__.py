"""
Analysis of resolved templates into the device/interface graph.
"""

from __future__ import annotations

from topopoll.analyzer.analyzer import Analyzer, port_identity

__all__ = ["Analyzer", "port_identity"]
