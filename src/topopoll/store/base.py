"""
Graph store interface.

Nodes are matched by identity: an upsert whose identity items all appear
on an existing node of the same kind updates that node; otherwise a new
node is created carrying the identity items as attributes. Repeating the
same upsert or link is a no-op.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class NodeRef:
    """Handle to a stored node."""

    kind: str
    id: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


class GraphStore(Protocol):
    """Downstream store for devices, interfaces and their relations."""

    def upsert(self, kind: str, identity: Mapping[str, Any], attributes: Mapping[str, Any]) -> NodeRef:
        """
        Create or update a node.

        Args:
            kind: Node kind ("device", "interface")
            identity: Attributes identifying the node
            attributes: Attributes to set; None values are ignored

        Raises:
            StoreError: If the store rejects the request
        """
        ...

    def link(self, source: NodeRef, target: NodeRef, relation: str) -> None:
        """Create a relation between two nodes if it does not exist yet."""
        ...
