"""
Constants and default values for topopoll.

This module provides centralized configuration for:
- SNMP polling defaults
- Plugin directory conventions
- Graph store entity and relation names
- Common regex patterns
"""

from __future__ import annotations

import re
from typing import Final

# =============================================================================
# SNMP Configuration
# =============================================================================


class SNMPDefaults:
    """Default values for SNMP polling."""

    PORT: Final[int] = 161
    TIMEOUT: Final[float] = 1.5
    RETRIES: Final[int] = 2
    COMMUNITY: Final[str] = "public"

    # Maximum number of variable bindings per request PDU
    MAX_REQUEST_SIZE: Final[int] = 3

    # Full polling cycle, in milliseconds
    CYCLE_TIME_MS: Final[int] = 300_000

    # Upper bound on GETNEXT rounds in one table walk
    MAX_WALK_ROUNDS: Final[int] = 65_536

    # Largest CIDR block a device declaration may expand to
    MAX_CIDR_HOSTS: Final[int] = 65_536


class SNMPVersions:
    """Message processing model numbers used by pysnmp CommunityData."""

    MP_MODEL: Final[dict[str, int]] = {
        "1": 0,
        "2c": 1,
    }


# =============================================================================
# Plugin Configuration
# =============================================================================


class PluginDefaults:
    """Defaults for plugin document loading."""

    DEFAULT_DOCUMENT: Final[str] = "default.yaml"
    YAML_SUFFIXES: Final[tuple[str, ...]] = (".yaml", ".yml")
    XML_SUFFIXES: Final[tuple[str, ...]] = (".xml",)


# =============================================================================
# Graph Store Names
# =============================================================================


class EntityKinds:
    """Node kinds written to the graph store."""

    DEVICE: Final[str] = "device"
    INTERFACE: Final[str] = "interface"


class Relations:
    """Relationship kinds written to the graph store."""

    HAS: Final[str] = "has"
    CABLE: Final[str] = "cable"


class LldpPortSubtypes:
    """LldpPortIdSubtype names the analyzers know how to map to an interface."""

    INTERFACE_ALIAS: Final[str] = "interfaceAlias"
    INTERFACE_NAME: Final[str] = "interfaceName"
    LOCAL: Final[str] = "local"


# =============================================================================
# Regex Patterns
# =============================================================================


class Patterns:
    """Compiled regex patterns for common operations."""

    # Dotted numeric object identifier, optionally with a leading dot
    OID: Final[re.Pattern[str]] = re.compile(r"^\.?\d+(?:\.\d+)*$")

    # Symbol reference written as MODULE::name
    QUALIFIED_SYMBOL: Final[re.Pattern[str]] = re.compile(r"^([A-Za-z][\w-]*)::(\w+)$")
