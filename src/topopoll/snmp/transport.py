"""
SNMP transport on top of pysnmp's asyncio high-level API.

One exchange is one request PDU and its response. The transport hides
retries and timeouts (handled by pysnmp) and every failure mode: a
timeout, an error indication or an error status all come back as None.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from pyasn1.type import univ
from pysnmp.error import PySnmpError
from pysnmp.hlapi.v3arch.asyncio import (
    USM_AUTH_HMAC96_MD5,
    USM_AUTH_HMAC96_SHA,
    USM_AUTH_HMAC192_SHA256,
    USM_PRIV_CBC56_DES,
    USM_PRIV_CBC168_3DES,
    USM_PRIV_CFB128_AES,
    USM_PRIV_CFB192_AES,
    USM_PRIV_CFB256_AES,
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    UsmUserData,
    get_cmd,
    next_cmd,
)
from pysnmp.proto import rfc1902, rfc1905

from topopoll.constants import SNMPVersions
from topopoll.core.config import CommunityCredentials, CredentialSet
from topopoll.core.exceptions import SNMPConnectionError, SNMPError, SNMPTimeoutError
from topopoll.models.pdu import NO_VALUE, BindingValue, OperationKind, Pdu, VarBind

logger = logging.getLogger(__name__)

_AUTH_PROTOCOLS = {
    "MD5": USM_AUTH_HMAC96_MD5,
    "SHA": USM_AUTH_HMAC96_SHA,
    "SHA256": USM_AUTH_HMAC192_SHA256,
}

_PRIV_PROTOCOLS = {
    "DES": USM_PRIV_CBC56_DES,
    "3DES": USM_PRIV_CBC168_3DES,
    "AES128": USM_PRIV_CFB128_AES,
    "AES192": USM_PRIV_CFB192_AES,
    "AES256": USM_PRIV_CFB256_AES,
}

_NO_VALUE_TYPES = (univ.Null, rfc1905.NoSuchObject, rfc1905.NoSuchInstance, rfc1905.EndOfMibView)

# Line layout characters that still count as display text
_TEXT_CONTROLS = frozenset("\r\n\t")


class Transport(Protocol):
    """Sends one PDU to a device and returns its response."""

    def exchange(self, address: str, credentials: CredentialSet, request: Pdu) -> Pdu | None:
        """
        Perform one request/response exchange.

        Returns:
            The response PDU (same request id), or None if the device did
            not answer or answered with an error
        """
        ...


def build_auth(credentials: CredentialSet) -> Any:
    """
    Build the pysnmp authentication object.

    Returns:
        CommunityData for v1/v2c or UsmUserData for v3
    """
    if isinstance(credentials, CommunityCredentials):
        return CommunityData(
            credentials.community.get_secret_value(),
            mpModel=SNMPVersions.MP_MODEL[credentials.version],
        )
    return UsmUserData(
        credentials.username,
        credentials.auth_password.get_secret_value(),
        credentials.priv_password.get_secret_value(),
        authProtocol=_AUTH_PROTOCOLS.get(credentials.auth_protocol, USM_AUTH_HMAC96_SHA),
        privProtocol=_PRIV_PROTOCOLS.get(credentials.priv_protocol, USM_PRIV_CFB128_AES),
    )


def convert_value(value: Any) -> BindingValue:
    """Normalize a pysnmp value to int, str or NO_VALUE."""
    if value is None or isinstance(value, _NO_VALUE_TYPES):
        return NO_VALUE
    if isinstance(value, univ.Integer):
        return int(value)
    if isinstance(value, rfc1902.IpAddress):
        return ".".join(str(octet) for octet in value.asNumbers())
    if isinstance(value, univ.OctetString):
        raw = value.asOctets()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = None
        if text is not None and all(c.isprintable() or c in _TEXT_CONTROLS for c in text):
            return text
        return ":".join(f"{octet:02x}" for octet in raw)
    return value.prettyPrint()


class SnmpTransport:
    """
    pysnmp-backed transport.

    Each exchange runs on its own event loop with its own SnmpEngine, so
    operations on different threads share no pysnmp state.
    """

    def exchange(self, address: str, credentials: CredentialSet, request: Pdu) -> Pdu | None:
        try:
            return asyncio.run(self._exchange(address, credentials, request))
        except SNMPError as e:
            logger.debug(str(e))
            return None
        except PySnmpError as e:
            logger.info(f"SNMP exchange with {address} failed: {e}")
            return None

    async def _exchange(self, address: str, credentials: CredentialSet, request: Pdu) -> Pdu | None:
        engine = SnmpEngine()
        try:
            target = await UdpTransportTarget.create(
                (address, credentials.port),
                timeout=credentials.timeout,
                retries=credentials.retries,
            )
            command = get_cmd if request.kind == OperationKind.GET else next_cmd
            error_indication, error_status, error_index, var_binds = await command(
                engine,
                build_auth(credentials),
                target,
                ContextData(),
                *[ObjectType(ObjectIdentity(oid)) for oid in request.oids],
                lookupMib=False,
            )
        finally:
            engine.close_dispatcher()

        if error_indication:
            if "timeout" in str(error_indication).lower():
                raise SNMPTimeoutError(address, request.oids[0] if len(request) else None)
            raise SNMPConnectionError(address, credentials.port, str(error_indication))
        if error_status:
            position = int(error_index) - 1
            failed = request.oids[position] if 0 <= position < len(request) else "?"
            logger.debug(f"{address}: {error_status.prettyPrint()} at {failed}")
            return None

        response = request.copy_empty()
        for oid, value in var_binds:
            response.bindings.append(VarBind(str(oid), convert_value(value)))
        return response
