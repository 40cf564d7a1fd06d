"""
Entity templates.

A template is a fixed per-class schema of named attribute slots plus the
per-cycle state of one polled entity: the value and request identifier of
each slot, the cycle timestamp, the device address and, for capability
templates, the selected plugin document.

Entity classes are described by TemplateClass descriptors rather than
subclasses; decode rules and integer coercion live on the descriptor.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from topopoll.models.pdu import OperationKind

if TYPE_CHECKING:
    from topopoll.plugins.document import PluginDocument

logger = logging.getLogger(__name__)

# Converts a resolved value into the stored value
Decoder = Callable[[str], str]


def now_ms() -> int:
    """Current wall clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def ticks_to_epoch_ms(value: str) -> str:
    """Convert hundredths of a second since boot into an absolute epoch (ms)."""
    return str(now_ms() - int(value) * 10)


def ticks_to_ms(value: str) -> str:
    """Convert hundredths of a second into milliseconds."""
    return str(int(value) * 10)


@dataclass(frozen=True)
class TemplateClass:
    """
    Immutable schema of one entity class.

    Attributes:
        name: Class name, matching the plugin document section
        slots: Ordered attribute slot names
        operation: How the class is fetched
        decoders: Slot name -> conversion applied when a value is stored
        integer_slots: Slots returned as int by Template.get_value()
    """

    name: str
    slots: tuple[str, ...]
    operation: OperationKind = OperationKind.GET
    decoders: Mapping[str, Decoder] = field(default_factory=lambda: MappingProxyType({}))
    integer_slots: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        unknown = (set(self.decoders) | set(self.integer_slots)) - set(self.slots)
        if unknown:
            raise ValueError(f"{self.name}: unknown slots {sorted(unknown)}")


CAPABILITY = TemplateClass(
    name="capability",
    slots=("objectId",),
)

DEVICE = TemplateClass(
    name="device",
    slots=(
        "description",
        "uptime",
        "contact",
        "name",
        "location",
        "services",
        "serial",
        "brand",
        "model",
        "numberOfIf",
        "chassisSubtype",
        "chassisId",
    ),
    decoders=MappingProxyType({"uptime": ticks_to_epoch_ms}),
    integer_slots=frozenset({"uptime", "services", "numberOfIf"}),
)

INTERFACE = TemplateClass(
    name="interface",
    slots=(
        "index",
        "adminStatus",
        "operStatus",
        "name",
        "description",
        "media",
        "lastChange",
        "mtu",
        "type",
        "alias",
        "nameX",
    ),
    operation=OperationKind.GETALL,
    decoders=MappingProxyType({"lastChange": ticks_to_ms}),
    integer_slots=frozenset({"lastChange", "index", "mtu"}),
)

LLDP_LOCAL_PORT = TemplateClass(
    name="lldpLocalPort",
    slots=("subtype", "id", "portnumber"),
    operation=OperationKind.GETALL,
    integer_slots=frozenset({"portnumber"}),
)

LLDP_REMOTE_PORT = TemplateClass(
    name="lldpRemotePort",
    slots=(
        "localPort",
        "index",
        "chassisSubtype",
        "chassisId",
        "subtype",
        "id",
        "description",
        "systemName",
        "systemDescription",
    ),
    operation=OperationKind.GETALL,
    integer_slots=frozenset({"localPort", "index"}),
)

LLDP_REMOTE_SYSTEM = TemplateClass(
    name="lldpRemoteSystem",
    slots=("ifSubtype", "ifId"),
    operation=OperationKind.GETALL,
    integer_slots=frozenset({"ifId"}),
)

# Probes issued once a device's capability probe succeeds
DEPENDENT_CLASSES: tuple[TemplateClass, ...] = (
    DEVICE,
    INTERFACE,
    LLDP_LOCAL_PORT,
    LLDP_REMOTE_PORT,
    LLDP_REMOTE_SYSTEM,
)

TEMPLATE_CLASSES: dict[str, TemplateClass] = {
    cls.name: cls for cls in (CAPABILITY, *DEPENDENT_CLASSES)
}


class Template:
    """
    Schema plus in-progress resolution state for one polled entity.

    Values and request identifiers are write-once: a second set_value() or
    set_oid() on the same slot is ignored.
    """

    def __init__(
        self,
        template_class: TemplateClass,
        time: int,
        device: str | None = None,
    ):
        """
        Initialize an empty template.

        Args:
            template_class: Entity class descriptor
            time: Cycle timestamp shared by every entity of one pass
            device: Device address
        """
        self.template_class = template_class
        self.time = time
        self.device = device
        self.document: PluginDocument | None = None
        self._values: dict[str, str | None] = dict.fromkeys(template_class.slots)
        self._oids: dict[str, str | None] = dict.fromkeys(template_class.slots)

    def __repr__(self) -> str:
        return f"Template({self.name!r}, device={self.device!r}, values={self.values()!r})"

    @property
    def name(self) -> str:
        return self.template_class.name

    @property
    def slots(self) -> tuple[str, ...]:
        return self.template_class.slots

    @property
    def operation(self) -> OperationKind:
        return self.template_class.operation

    def __len__(self) -> int:
        return len(self.template_class.slots)

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def has_value(self, slot: str) -> bool:
        return self._values[slot] is not None

    def get_value_as_string(self, slot: str) -> str | None:
        return self._values[slot]

    def get_value(self, slot: str) -> Any:
        """
        Return a slot value, coerced to int for integer slots.

        Non-numeric text in an integer slot yields None.
        """
        value = self._values[slot]
        if value is None or slot not in self.template_class.integer_slots:
            return value
        try:
            return int(value)
        except ValueError:
            return None

    def set_value(self, slot: str, value: str | None) -> bool:
        """
        Store a value for a slot, applying the class decode rule.

        Returns:
            True if the value was stored; False if the slot was already set,
            the value was None, or decoding failed
        """
        if value is None or self._values[slot] is not None:
            return False
        decoder = self.template_class.decoders.get(slot)
        if decoder is not None:
            try:
                value = decoder(value)
            except (TypeError, ValueError) as e:
                logger.debug(f"{self.name}.{slot}: cannot decode {value!r}: {e}")
                return False
        self._values[slot] = value
        return True

    def values(self) -> dict[str, Any]:
        """Return the set slots with their typed values."""
        return {slot: self.get_value(slot) for slot in self.slots if self.has_value(slot)}

    def unset_slots(self) -> list[str]:
        return [slot for slot in self.slots if not self.has_value(slot)]

    # -------------------------------------------------------------------------
    # Request identifiers
    # -------------------------------------------------------------------------

    def get_oid(self, slot: str) -> str | None:
        return self._oids[slot]

    def set_oid(self, slot: str, oid: str | None) -> bool:
        """Record the request identifier of a slot, unless already recorded."""
        if oid is None or self._oids[slot] is not None:
            return False
        self._oids[slot] = oid
        return True

    # -------------------------------------------------------------------------
    # Copies
    # -------------------------------------------------------------------------

    def clone(self) -> Template:
        """Return an independent copy carrying the same state."""
        copy = Template(self.template_class, self.time, self.device)
        copy.document = self.document
        copy._values = dict(self._values)
        copy._oids = dict(self._oids)
        return copy


def create_template(class_name: str, time: int, device: str | None = None) -> Template:
    """
    Create a template by class name.

    Raises:
        KeyError: If the class name is unknown
    """
    return Template(TEMPLATE_CLASSES[class_name], time, device)
