"""
Shared pytest fixtures: a scripted SNMP agent, symbol registry, plugin
store and extraction engine.
"""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import SecretStr

from topopoll.core.config import CommunityCredentials, CredentialSet
from topopoll.extraction.engine import ExtractionEngine
from topopoll.mib.registry import StaticSymbolRegistry
from topopoll.models.pdu import NO_VALUE, OperationKind, Pdu, VarBind
from topopoll.plugins.store import PluginStore

SYS = "1.3.6.1.2.1.1"
IF = "1.3.6.1.2.1.2.2.1"
IFX = "1.3.6.1.2.1.31.1.1.1"
LLDP_LOC = "1.0.8802.1.1.2.1.3"
LLDP_REM = "1.0.8802.1.1.2.1.4.1.1"


def _key(oid: str) -> tuple[int, ...]:
    return tuple(int(part) for part in oid.strip(".").split("."))


class FakeAgent:
    """An SNMP agent answering GET and GETNEXT from a static object table."""

    def __init__(self, objects: dict[str, Any], community: str = "public"):
        self.objects = dict(objects)
        self.community = community
        self._ordered = sorted(self.objects, key=_key)

    def accepts(self, credentials: CredentialSet) -> bool:
        return (
            isinstance(credentials, CommunityCredentials)
            and credentials.community.get_secret_value() == self.community
        )

    def get(self, oid: str) -> VarBind:
        return VarBind(oid, self.objects.get(oid, NO_VALUE))

    def get_next(self, oid: str) -> VarBind:
        target = _key(oid)
        for candidate in self._ordered:
            if _key(candidate) > target:
                return VarBind(candidate, self.objects[candidate])
        return VarBind(oid, NO_VALUE)


class FakeTransport:
    """Transport routing exchanges to FakeAgents by address; records calls."""

    def __init__(self, agents: dict[str, FakeAgent] | None = None):
        self.agents = agents or {}
        self.calls: list[tuple[str, CredentialSet, Pdu]] = []

    def exchange(self, address: str, credentials: CredentialSet, request: Pdu) -> Pdu | None:
        self.calls.append((address, credentials, request))
        agent = self.agents.get(address)
        if agent is None or not agent.accepts(credentials):
            return None
        response = request.copy_empty()
        for oid in request.oids:
            if request.kind == OperationKind.GET:
                response.bindings.append(agent.get(oid))
            else:
                response.bindings.append(agent.get_next(oid))
        return response


def cisco_switch_objects() -> dict[str, Any]:
    """Object table of a small Cisco switch with one LLDP neighbour."""
    return {
        # system
        f"{SYS}.1.0": "Cisco IOS Software, C3750E Software, Version 15.2(4)E10",
        f"{SYS}.2.0": "1.3.6.1.4.1.9.1.1208",
        f"{SYS}.3.0": 123456,
        f"{SYS}.4.0": "noc@example.net",
        f"{SYS}.5.0": "access1",
        f"{SYS}.6.0": "rack 4",
        f"{SYS}.7.0": 6,
        "1.3.6.1.2.1.2.1.0": 3,
        # ifTable
        f"{IF}.1.1": 1,
        f"{IF}.1.2": 2,
        f"{IF}.1.3": 3,
        f"{IF}.2.1": "GigabitEthernet0/1",
        f"{IF}.2.2": "GigabitEthernet0/2",
        f"{IF}.2.3": "Loopback0",
        f"{IF}.3.1": 6,
        f"{IF}.3.2": 6,
        f"{IF}.3.3": 24,
        f"{IF}.4.1": 1500,
        f"{IF}.4.2": 1500,
        f"{IF}.4.3": 1514,
        f"{IF}.7.1": 1,
        f"{IF}.7.2": 1,
        f"{IF}.7.3": 1,
        f"{IF}.8.1": 1,
        f"{IF}.8.2": 2,
        f"{IF}.8.3": 1,
        f"{IF}.9.1": 100,
        f"{IF}.9.2": 200,
        f"{IF}.9.3": 0,
        # ifXTable
        f"{IFX}.1.1": "Gi0/1",
        f"{IFX}.1.2": "Gi0/2",
        f"{IFX}.1.3": "Lo0",
        f"{IFX}.18.1": "uplink",
        f"{IFX}.18.2": "",
        f"{IFX}.18.3": "",
        # LLDP local system
        f"{LLDP_LOC}.1.0": 4,
        f"{LLDP_LOC}.2.0": "00:11:22:33:44:55",
        f"{LLDP_LOC}.7.1.2.1": 7,
        f"{LLDP_LOC}.7.1.2.2": 5,
        f"{LLDP_LOC}.7.1.3.1": "1",
        f"{LLDP_LOC}.7.1.3.2": "Gi0/2",
        # LLDP remote table, index timeMark.localPort.index
        f"{LLDP_REM}.4.0.1.1": 4,
        f"{LLDP_REM}.5.0.1.1": "aa:bb:cc:dd:ee:ff",
        f"{LLDP_REM}.6.0.1.1": 5,
        f"{LLDP_REM}.7.0.1.1": "Eth1/1",
        f"{LLDP_REM}.8.0.1.1": "to access1",
        f"{LLDP_REM}.9.0.1.1": "core1",
        f"{LLDP_REM}.10.0.1.1": "Cisco NX-OS",
    }


@pytest.fixture
def community() -> CommunityCredentials:
    """Working v2c credentials."""
    return CommunityCredentials(community=SecretStr("public"))


@pytest.fixture
def wrong_community() -> CommunityCredentials:
    """Credentials the fake agents reject."""
    return CommunityCredentials(community=SecretStr("wrong"))


@pytest.fixture
def switch_agent() -> FakeAgent:
    return FakeAgent(cisco_switch_objects())


@pytest.fixture
def transport(switch_agent: FakeAgent) -> FakeTransport:
    """Transport with the Cisco switch at 10.0.0.1."""
    return FakeTransport({"10.0.0.1": switch_agent})


@pytest.fixture
def registry() -> StaticSymbolRegistry:
    return StaticSymbolRegistry()


@pytest.fixture
def plugin_store() -> PluginStore:
    """The bundled plugin documents."""
    return PluginStore.bundled()


@pytest.fixture
def engine(plugin_store: PluginStore, registry: StaticSymbolRegistry) -> ExtractionEngine:
    return ExtractionEngine(plugin_store, registry)


@pytest.fixture
def write_plugin(tmp_path):
    """Write a plugin document into tmp_path/plugins and return its path."""
    directory = tmp_path / "plugins"
    directory.mkdir()

    def _write(name: str, content: str):
        path = directory / name
        path.write_text(content)
        return path

    return _write
