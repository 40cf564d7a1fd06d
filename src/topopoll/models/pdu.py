"""
SNMP protocol data units as plain Python values.

The walker and the extraction engine only ever see these types; the
transport converts pysnmp objects to and from them at the wire boundary.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class NoValue:
    """Marker for a binding that carries no value (Null, noSuch*, endOfMibView)."""

    _instance: NoValue | None = None

    def __new__(cls) -> NoValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = NoValue()

# Value carried by a binding after transport conversion
BindingValue = Union[int, str, NoValue]


class OperationKind(str, Enum):
    """How a request is executed."""

    GET = "get"
    GETNEXT = "getnext"
    GETALL = "getall"


def oid_startswith(oid: str, prefix: str) -> bool:
    """
    Test whether an OID lies in the subtree of another.

    Compares dotted components, so "1.3.6.1.2.1.2.2.1.10" is not under
    "1.3.6.1.2.1.2.2.1.1".
    """
    oid = oid.strip(".")
    prefix = prefix.strip(".")
    if not prefix:
        return True
    return oid == prefix or oid.startswith(prefix + ".")


@dataclass(frozen=True)
class VarBind:
    """An (identifier, value) pair."""

    oid: str
    value: BindingValue = NO_VALUE

    @property
    def has_value(self) -> bool:
        return self.value is not NO_VALUE


_request_ids = itertools.count(1)


def next_request_id() -> int:
    """Return a process-unique request correlation id."""
    return next(_request_ids)


@dataclass
class Pdu:
    """
    A request or response PDU.

    Attributes:
        request_id: Correlation id shared by a request and its response
        kind: Operation the PDU belongs to
        bindings: Ordered variable bindings
    """

    request_id: int = field(default_factory=next_request_id)
    kind: OperationKind = OperationKind.GET
    bindings: list[VarBind] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.bindings)

    def add(self, oid: str) -> None:
        """Append a request binding for an OID."""
        self.bindings.append(VarBind(oid))

    @property
    def oids(self) -> list[str]:
        return [vb.oid for vb in self.bindings]

    def copy_empty(self) -> Pdu:
        """Return a PDU with the same id and kind but no bindings."""
        return Pdu(request_id=self.request_id, kind=self.kind)

    def first_under(self, oid: str) -> VarBind | None:
        """Return the first binding equal to or under an OID."""
        for vb in self.bindings:
            if oid_startswith(vb.oid, oid):
                return vb
        return None

    def all_empty(self) -> bool:
        """True if every binding carries the no-value marker."""
        return all(not vb.has_value for vb in self.bindings)
