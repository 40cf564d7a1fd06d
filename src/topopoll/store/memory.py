"""
In-process graph store.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping
from typing import Any

from topopoll.constants import Relations
from topopoll.store.base import NodeRef

logger = logging.getLogger(__name__)


class MemoryGraphStore:
    """
    Thread-safe graph store kept in memory.

    Used when no store URL is configured, by the probe command and by
    tests. "cable" links are undirected; "has" links are directed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._nodes: dict[NodeRef, dict[str, Any]] = {}
        self._links: set[tuple[NodeRef, str, NodeRef]] = set()

    def __len__(self) -> int:
        return len(self._nodes)

    def upsert(self, kind: str, identity: Mapping[str, Any], attributes: Mapping[str, Any]) -> NodeRef:
        identity = {k: v for k, v in identity.items() if v is not None}
        with self._lock:
            ref = self._find(kind, identity)
            if ref is None:
                ref = NodeRef(kind, str(next(self._ids)))
                self._nodes[ref] = dict(identity)
                logger.debug(f"Created {ref} {identity}")
            node = self._nodes[ref]
            node.update({k: v for k, v in attributes.items() if v is not None})
            return ref

    def _find(self, kind: str, identity: Mapping[str, Any]) -> NodeRef | None:
        if not identity:
            return None
        for ref, node in self._nodes.items():
            if ref.kind == kind and all(node.get(k) == v for k, v in identity.items()):
                return ref
        return None

    def link(self, source: NodeRef, target: NodeRef, relation: str) -> None:
        if relation == Relations.CABLE and (target.kind, target.id) < (source.kind, source.id):
            source, target = target, source
        with self._lock:
            self._links.add((source, relation, target))

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def node(self, ref: NodeRef) -> dict[str, Any]:
        """Return a copy of a node's attributes."""
        with self._lock:
            return dict(self._nodes[ref])

    def nodes(self, kind: str | None = None) -> dict[NodeRef, dict[str, Any]]:
        with self._lock:
            return {ref: dict(node) for ref, node in self._nodes.items() if kind is None or ref.kind == kind}

    def find(self, kind: str, **identity: Any) -> NodeRef | None:
        """Return the first node of a kind carrying all given attributes."""
        with self._lock:
            return self._find(kind, identity)

    def links(self, relation: str | None = None) -> set[tuple[NodeRef, str, NodeRef]]:
        with self._lock:
            return {link for link in self._links if relation is None or link[1] == relation}
