"""
Analyzer: turns resolved templates into graph store nodes and relations.

Node identity:
    device     {"address": ...} for polled devices, {"chassisId": ...} for
               LLDP neighbours; a device template also records its chassisId
               so both forms end up on the same node
    interface  {"device": <device node>, <one of index, alias, nameX,
               portnumber>}

Partial templates are analyzed with whatever slots are set.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from topopoll.constants import EntityKinds, LldpPortSubtypes, Relations
from topopoll.models.templates import Template
from topopoll.store.base import GraphStore, NodeRef

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def port_identity(subtype: str | None, port_id: Any) -> dict[str, Any]:
    """
    Map an LLDP port id to the interface attribute it names.

    interfaceAlias -> alias, interfaceName -> nameX, local -> index. Other
    subtypes (MAC address, network address, ...) identify no interface.
    """
    if port_id is None:
        return {}
    if subtype == LldpPortSubtypes.INTERFACE_ALIAS:
        return {"alias": str(port_id)}
    if subtype == LldpPortSubtypes.INTERFACE_NAME:
        return {"nameX": str(port_id)}
    if subtype == LldpPortSubtypes.LOCAL:
        index = _as_int(port_id)
        return {"index": index} if index is not None else {}
    return {}


class Analyzer:
    """
    Dispatches templates to per-class handlers by class name.

    Example:
        analyzer = Analyzer(MemoryGraphStore())
        analyzer.analyze(device_template)
    """

    def __init__(self, store: GraphStore):
        self.store = store
        self._handlers: dict[str, Callable[[Template], None]] = {
            "device": self._device,
            "interface": self._interface,
            "lldpLocalPort": self._lldp_local_port,
            "lldpRemotePort": self._lldp_remote_port,
            "lldpRemoteSystem": self._lldp_remote_system,
        }

    def analyze(self, template: Template) -> None:
        """
        Write one template to the graph store.

        Raises:
            StoreError: If the graph store rejects a request
        """
        handler = self._handlers.get(template.name)
        if handler is None:
            logger.debug(f"No analyzer for {template.name}")
            return
        handler(template)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _this_device(self, template: Template, attributes: dict[str, Any] | None = None) -> NodeRef:
        attrs = {"cycleTime": template.time}
        attrs.update(attributes or {})
        return self.store.upsert(EntityKinds.DEVICE, {"address": template.device}, attrs)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _device(self, template: Template) -> None:
        self._this_device(template, template.values())

    def _interface(self, template: Template) -> None:
        device = self._this_device(template)
        index = template.get_value("index")
        if index is None:
            logger.debug(f"{template.device}: interface row without index")
            return
        attributes = template.values()
        attributes["cycleTime"] = template.time
        interface = self.store.upsert(
            EntityKinds.INTERFACE,
            {"device": str(device), "index": index},
            attributes,
        )
        self.store.link(device, interface, Relations.HAS)

    def _lldp_local_port(self, template: Template) -> None:
        device = self._this_device(template)
        subtype = template.get_value("subtype")
        port_id = template.get_value("id")
        identity = port_identity(subtype, port_id)

        portnumber = template.get_value("portnumber")
        if portnumber is None:
            portnumber = identity.get("index")
        if not identity and portnumber is None:
            logger.debug(f"{template.device}: cannot map local port {subtype}/{port_id}")
            return
        if not identity:
            identity = {"portnumber": portnumber}

        interface = self.store.upsert(
            EntityKinds.INTERFACE,
            {"device": str(device), **identity},
            {"portnumber": portnumber, "cycleTime": template.time},
        )
        self.store.link(device, interface, Relations.HAS)

    def _lldp_remote_port(self, template: Template) -> None:
        device = self._this_device(template)
        local_port = template.get_value("localPort")
        chassis_id = template.get_value("chassisId")
        if local_port is None or chassis_id is None:
            logger.debug(f"{template.device}: incomplete LLDP neighbour {template.values()}")
            return

        local_interface = self.store.upsert(
            EntityKinds.INTERFACE,
            {"device": str(device), "portnumber": local_port},
            {"cycleTime": template.time},
        )
        self.store.link(device, local_interface, Relations.HAS)

        remote_device = self.store.upsert(
            EntityKinds.DEVICE,
            {"chassisId": chassis_id},
            {
                "chassisSubtype": template.get_value("chassisSubtype"),
                "name": template.get_value("systemName"),
                "description": template.get_value("systemDescription"),
                "cycleTime": template.time,
            },
        )

        identity = port_identity(template.get_value("subtype"), template.get_value("id"))
        if not identity:
            logger.debug(f"{template.device}: unmapped remote port subtype {template.get_value('subtype')}")
            return
        remote_interface = self.store.upsert(
            EntityKinds.INTERFACE,
            {"device": str(remote_device), **identity},
            {"description": template.get_value("description"), "cycleTime": template.time},
        )
        self.store.link(remote_device, remote_interface, Relations.HAS)
        self.store.link(local_interface, remote_interface, Relations.CABLE)

    def _lldp_remote_system(self, template: Template) -> None:
        logger.debug(f"{template.device}: LLDP remote system {template.values()}")
