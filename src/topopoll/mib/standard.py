"""
Standard MIB objects used by the bundled default plugin.

Lets the collector run without compiled MIB modules on disk. Only the
objects the default plugin references are listed.
"""

from __future__ import annotations

from typing import Any, Final

IF_ADMIN_STATUS: Final[dict[str, int]] = {"up": 1, "down": 2, "testing": 3}

IF_OPER_STATUS: Final[dict[str, int]] = {
    "up": 1,
    "down": 2,
    "testing": 3,
    "unknown": 4,
    "dormant": 5,
    "notPresent": 6,
    "lowerLayerDown": 7,
}

# Subset of IANAifType; deliberately sparse
IANA_IF_TYPE: Final[dict[str, int]] = {
    "other": 1,
    "ethernetCsmacd": 6,
    "iso88023Csmacd": 7,
    "fddi": 15,
    "ppp": 23,
    "softwareLoopback": 24,
    "propPointToPointSerial": 22,
    "propVirtual": 53,
    "ieee80211": 71,
    "tunnel": 131,
    "l2vlan": 135,
    "l3ipvlan": 136,
    "ieee8023adLag": 161,
    "bridge": 209,
}

LLDP_CHASSIS_ID_SUBTYPE: Final[dict[str, int]] = {
    "chassisComponent": 1,
    "interfaceAlias": 2,
    "portComponent": 3,
    "macAddress": 4,
    "networkAddress": 5,
    "interfaceName": 6,
    "local": 7,
}

LLDP_PORT_ID_SUBTYPE: Final[dict[str, int]] = {
    "interfaceAlias": 1,
    "portComponent": 2,
    "macAddress": 3,
    "networkAddress": 4,
    "interfaceName": 5,
    "agentCircuitId": 6,
    "local": 7,
}

LLDP_MAN_ADDR_IF_SUBTYPE: Final[dict[str, int]] = {
    "unknown": 1,
    "ifIndex": 2,
    "systemPortNumber": 3,
}


def _scalar(oid: str, syntax: str = "OctetString", enums: dict[str, int] | None = None) -> dict[str, Any]:
    return {"oid": oid, "scalar": True, "syntax": syntax, "enums": enums or {}}


def _column(oid: str, syntax: str = "OctetString", enums: dict[str, int] | None = None) -> dict[str, Any]:
    return {"oid": oid, "scalar": False, "syntax": syntax, "enums": enums or {}}


STANDARD_SYMBOLS: Final[dict[str, dict[str, dict[str, Any]]]] = {
    "SNMPv2-MIB": {
        "sysDescr": _scalar("1.3.6.1.2.1.1.1"),
        "sysObjectID": _scalar("1.3.6.1.2.1.1.2", "ObjectIdentifier"),
        "sysUpTime": _scalar("1.3.6.1.2.1.1.3", "TimeTicks"),
        "sysContact": _scalar("1.3.6.1.2.1.1.4"),
        "sysName": _scalar("1.3.6.1.2.1.1.5"),
        "sysLocation": _scalar("1.3.6.1.2.1.1.6"),
        "sysServices": _scalar("1.3.6.1.2.1.1.7", "Integer"),
    },
    "IF-MIB": {
        "ifNumber": _scalar("1.3.6.1.2.1.2.1", "Integer"),
        "ifIndex": _column("1.3.6.1.2.1.2.2.1.1", "Integer"),
        "ifDescr": _column("1.3.6.1.2.1.2.2.1.2"),
        "ifType": _column("1.3.6.1.2.1.2.2.1.3", "Integer", IANA_IF_TYPE),
        "ifMtu": _column("1.3.6.1.2.1.2.2.1.4", "Integer"),
        "ifSpeed": _column("1.3.6.1.2.1.2.2.1.5", "Gauge32"),
        "ifPhysAddress": _column("1.3.6.1.2.1.2.2.1.6"),
        "ifAdminStatus": _column("1.3.6.1.2.1.2.2.1.7", "Integer", IF_ADMIN_STATUS),
        "ifOperStatus": _column("1.3.6.1.2.1.2.2.1.8", "Integer", IF_OPER_STATUS),
        "ifLastChange": _column("1.3.6.1.2.1.2.2.1.9", "TimeTicks"),
        "ifName": _column("1.3.6.1.2.1.31.1.1.1.1"),
        "ifAlias": _column("1.3.6.1.2.1.31.1.1.1.18"),
    },
    "ENTITY-MIB": {
        "entPhysicalSerialNum": _column("1.3.6.1.2.1.47.1.1.1.1.11"),
        "entPhysicalMfgName": _column("1.3.6.1.2.1.47.1.1.1.1.12"),
        "entPhysicalModelName": _column("1.3.6.1.2.1.47.1.1.1.1.13"),
    },
    "LLDP-MIB": {
        "lldpLocChassisIdSubtype": _scalar("1.0.8802.1.1.2.1.3.1", "Integer", LLDP_CHASSIS_ID_SUBTYPE),
        "lldpLocChassisId": _scalar("1.0.8802.1.1.2.1.3.2"),
        "lldpLocPortIdSubtype": _column("1.0.8802.1.1.2.1.3.7.1.2", "Integer", LLDP_PORT_ID_SUBTYPE),
        "lldpLocPortId": _column("1.0.8802.1.1.2.1.3.7.1.3"),
        "lldpLocPortDesc": _column("1.0.8802.1.1.2.1.3.7.1.4"),
        "lldpRemChassisIdSubtype": _column("1.0.8802.1.1.2.1.4.1.1.4", "Integer", LLDP_CHASSIS_ID_SUBTYPE),
        "lldpRemChassisId": _column("1.0.8802.1.1.2.1.4.1.1.5"),
        "lldpRemPortIdSubtype": _column("1.0.8802.1.1.2.1.4.1.1.6", "Integer", LLDP_PORT_ID_SUBTYPE),
        "lldpRemPortId": _column("1.0.8802.1.1.2.1.4.1.1.7"),
        "lldpRemPortDesc": _column("1.0.8802.1.1.2.1.4.1.1.8"),
        "lldpRemSysName": _column("1.0.8802.1.1.2.1.4.1.1.9"),
        "lldpRemSysDesc": _column("1.0.8802.1.1.2.1.4.1.1.10"),
        "lldpRemManAddrIfSubtype": _column("1.0.8802.1.1.2.1.4.2.1.3", "Integer", LLDP_MAN_ADDR_IF_SUBTYPE),
        "lldpRemManAddrIfId": _column("1.0.8802.1.1.2.1.4.2.1.4", "Integer"),
    },
}
