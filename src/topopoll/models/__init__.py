"""
Data models for topopoll.

Contains:
- PDU: Request/response bindings exchanged with devices
- Templates: Per-entity-class attribute schemas and resolution state
"""

from __future__ import annotations

from topopoll.models.pdu import NO_VALUE, OperationKind, Pdu, VarBind, oid_startswith
from topopoll.models.templates import (
    CAPABILITY,
    DEPENDENT_CLASSES,
    DEVICE,
    INTERFACE,
    LLDP_LOCAL_PORT,
    LLDP_REMOTE_PORT,
    LLDP_REMOTE_SYSTEM,
    TEMPLATE_CLASSES,
    Template,
    TemplateClass,
    create_template,
)

__all__ = [
    "NO_VALUE",
    "OperationKind",
    "Pdu",
    "VarBind",
    "oid_startswith",
    "Template",
    "TemplateClass",
    "create_template",
    "TEMPLATE_CLASSES",
    "DEPENDENT_CLASSES",
    "CAPABILITY",
    "DEVICE",
    "INTERFACE",
    "LLDP_LOCAL_PORT",
    "LLDP_REMOTE_PORT",
    "LLDP_REMOTE_SYSTEM",
]
