"""
Graph stores receiving analyzed entities.
"""

from __future__ import annotations

from topopoll.store.base import GraphStore, NodeRef
from topopoll.store.http import HttpGraphStore
from topopoll.store.memory import MemoryGraphStore

__all__ = ["GraphStore", "NodeRef", "MemoryGraphStore", "HttpGraphStore"]
