"""
SNMP access: transport, paginated walker and per-template operations.
"""

from __future__ import annotations

from topopoll.snmp.operation import OperationListener, SnmpOperation
from topopoll.snmp.transport import SnmpTransport, Transport
from topopoll.snmp.walker import ProtocolWalker

__all__ = ["Transport", "SnmpTransport", "ProtocolWalker", "SnmpOperation", "OperationListener"]
