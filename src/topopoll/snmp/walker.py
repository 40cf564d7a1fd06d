"""
Protocol walker.

Drives paginated, size-bounded exchanges against one device:

- requests larger than max_request_size are split into sub-requests and
  their responses recombined in order under the original request id
- credentials are tried in order on the first sub-request only; the one
  that answers serves the rest of the operation
- GETALL walks a table with GETNEXT rounds, one returned row per round
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from topopoll.constants import SNMPDefaults
from topopoll.core.config import CredentialSet
from topopoll.models.pdu import NO_VALUE, OperationKind, Pdu, VarBind, oid_startswith
from topopoll.snmp.transport import Transport

logger = logging.getLogger(__name__)


class ProtocolWalker:
    """
    Request/response driver for one device at a time.

    Example:
        walker = ProtocolWalker(SnmpTransport(), max_request_size=3)
        rows = walker.run("10.0.0.1", credentials, request)
    """

    def __init__(
        self,
        transport: Transport,
        max_request_size: int = SNMPDefaults.MAX_REQUEST_SIZE,
        max_walk_rounds: int = SNMPDefaults.MAX_WALK_ROUNDS,
    ):
        if max_request_size < 1:
            raise ValueError("max_request_size must be at least 1")
        self.transport = transport
        self.max_request_size = max_request_size
        self.max_walk_rounds = max_walk_rounds

    # -------------------------------------------------------------------------
    # Paging
    # -------------------------------------------------------------------------

    def split(self, pdu: Pdu) -> list[Pdu]:
        """Split a PDU into sub-requests of at most max_request_size bindings."""
        if not pdu.bindings:
            return [pdu.copy_empty()]
        parts = []
        for start in range(0, len(pdu.bindings), self.max_request_size):
            part = pdu.copy_empty()
            part.bindings = list(pdu.bindings[start:start + self.max_request_size])
            parts.append(part)
        return parts

    @staticmethod
    def combine(parts: Sequence[Pdu], request_id: int, kind: OperationKind = OperationKind.GET) -> Pdu:
        """Concatenate sub-responses, in order, under the original request id."""
        combined = Pdu(request_id=request_id, kind=kind)
        for part in parts:
            combined.bindings.extend(part.bindings)
        return combined

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run(
        self,
        address: str,
        credentials: Sequence[CredentialSet],
        request: Pdu,
        kind: OperationKind | None = None,
    ) -> list[Pdu]:
        """
        Execute a request against a device.

        Args:
            address: Device address
            credentials: Credential sets, tried in order
            request: Request PDU
            kind: Operation kind; defaults to the request's own

        Returns:
            Response rows: at most one for GET/GETNEXT, one per table row
            for GETALL. Empty if no credential got a reply.
        """
        kind = kind or request.kind
        if not request.bindings:
            logger.debug(f"{address}: empty request, nothing to do")
            return []
        if kind == OperationKind.GETALL:
            return self._walk(address, credentials, request)
        response = self._single(address, credentials, request, kind)
        return [response] if response is not None else []

    def _first_reply(
        self,
        address: str,
        credentials: Sequence[CredentialSet],
        request: Pdu,
    ) -> tuple[CredentialSet, Pdu] | None:
        """Try each credential set until one gets a reply."""
        for index, credential in enumerate(credentials):
            response = self.transport.exchange(address, credential, request)
            if response is not None:
                if index:
                    logger.debug(f"{address}: answered with credential set #{index + 1}")
                return credential, response
        return None

    def _single(
        self,
        address: str,
        credentials: Sequence[CredentialSet],
        request: Pdu,
        kind: OperationKind,
    ) -> Pdu | None:
        parts = self.split(request)
        for part in parts:
            part.kind = kind

        first = self._first_reply(address, credentials, parts[0])
        if first is None:
            logger.info(f"{address}: no response to {kind.value} request")
            return None
        credential, response = first

        responses = [response]
        for part in parts[1:]:
            reply = self.transport.exchange(address, credential, part)
            if reply is None:
                logger.debug(f"{address}: sub-request lost, padding {len(part)} bindings")
                reply = part.copy_empty()
                reply.bindings = [VarBind(oid) for oid in part.oids]
            responses.append(reply)
        return self.combine(responses, request.request_id, kind)

    def _walk(self, address: str, credentials: Sequence[CredentialSet], request: Pdu) -> list[Pdu]:
        """Walk a table, one GETNEXT round per row."""
        columns = request.oids
        cursor = list(columns)
        credential: CredentialSet | None = None
        rows: list[Pdu] = []

        for _ in range(self.max_walk_rounds):
            round_request = Pdu(request_id=request.request_id, kind=OperationKind.GETNEXT)
            for oid in cursor:
                round_request.add(oid)

            returned: list[VarBind] = []
            for part in self.split(round_request):
                if credential is None:
                    first = self._first_reply(address, credentials, part)
                    if first is None:
                        logger.info(f"{address}: no response to table walk")
                        return rows
                    credential, reply = first
                else:
                    reply = self.transport.exchange(address, credential, part)
                if reply is None or not reply.bindings:
                    logger.debug(f"{address}: walk ended after {len(rows)} rows")
                    return rows
                # Keep positions aligned with the requested columns
                bindings = reply.bindings[:len(part)]
                bindings += [VarBind(oid) for oid in part.oids[len(bindings):]]
                returned.extend(bindings)

            row = Pdu(request_id=request.request_id, kind=OperationKind.GETALL)
            for index, column in enumerate(columns):
                binding = returned[index]
                if not oid_startswith(binding.oid, column):
                    row.bindings.append(VarBind(column, NO_VALUE))
                else:
                    row.bindings.append(binding)
                cursor[index] = binding.oid

            if row.all_empty():
                return rows
            rows.append(row)

        logger.warning(f"{address}: table walk stopped after {self.max_walk_rounds} rounds")
        return rows
