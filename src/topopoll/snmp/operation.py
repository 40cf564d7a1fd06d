"""
SNMP operations: one template's request against one device.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Protocol

from topopoll.core.config import CredentialSet
from topopoll.models.pdu import Pdu
from topopoll.models.templates import Template
from topopoll.snmp.walker import ProtocolWalker

logger = logging.getLogger(__name__)


class OperationListener(Protocol):
    """Notified when an operation finishes, successfully or not."""

    def on_stop(self, operation: SnmpOperation) -> None: ...


class SnmpOperation:
    """
    A prepared request for one template on one device.

    The operation owns its request PDU and, once run, the response rows.
    has_responses is False both before running and after a run that got
    no reply.

    Attributes:
        address: Device address
        credentials: Ordered credential sets for the device
        template: Template the request was prepared from
        request: Request PDU
        responses: Response rows; None until a run got a reply
    """

    def __init__(
        self,
        address: str,
        credentials: Sequence[CredentialSet],
        template: Template,
        request: Pdu,
        walker: ProtocolWalker,
        listener: OperationListener | None = None,
    ):
        self.address = address
        self.credentials = list(credentials)
        self.template = template
        self.request = request
        self.walker = walker
        self.listener = listener
        self.responses: list[Pdu] | None = None
        self._thread: threading.Thread | None = None

    def __repr__(self) -> str:
        return f"SnmpOperation({self.template.name!r}, address={self.address!r})"

    @property
    def has_responses(self) -> bool:
        return bool(self.responses)

    def run(self) -> None:
        """Execute the request, then notify the listener."""
        try:
            rows = self.walker.run(self.address, self.credentials, self.request, self.template.operation)
            self.responses = rows or None
        finally:
            if self.listener is not None:
                self.listener.on_stop(self)

    def start(self) -> threading.Thread:
        """Run on a daemon thread and return it."""
        self._thread = threading.Thread(
            target=self.run,
            name=f"snmp-{self.template.name}-{self.address}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> None:
        """Wait for a started operation to finish."""
        if self._thread is not None:
            self._thread.join(timeout)
