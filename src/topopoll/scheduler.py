"""
Collection scheduler.

Each cycle probes every configured device for its capability (the reported
sysObjectID), selects the matching plugin document, then fans out one
operation per dependent entity class. Every operation runs on its own
thread and reports back through on_stop().
"""

from __future__ import annotations

import logging
import threading
import time

from topopoll.analyzer.analyzer import Analyzer
from topopoll.core.config import Configuration
from topopoll.core.exceptions import ConfigurationError
from topopoll.extraction.engine import ExtractionEngine
from topopoll.models.templates import CAPABILITY, DEPENDENT_CLASSES, Template, now_ms
from topopoll.plugins.document import PluginDocument
from topopoll.snmp.operation import SnmpOperation
from topopoll.snmp.walker import ProtocolWalker

logger = logging.getLogger(__name__)


class CapabilityCache:
    """Latest resolved capability template per device address."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._templates: dict[str, Template] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)

    def get(self, address: str) -> Template | None:
        with self._lock:
            return self._templates.get(address)

    def put(self, address: str, template: Template) -> None:
        with self._lock:
            self._templates[address] = template

    def document_for(self, address: str) -> PluginDocument | None:
        template = self.get(address)
        return template.document if template is not None else None


class Collector:
    """
    Drives polling cycles.

    Example:
        collector = Collector(configuration, engine, walker, analyzer)
        stop = threading.Event()
        collector.run(stop)
    """

    def __init__(
        self,
        configuration: Configuration,
        engine: ExtractionEngine,
        walker: ProtocolWalker,
        analyzer: Analyzer,
    ):
        self.configuration = configuration
        self.engine = engine
        self.walker = walker
        self.analyzer = analyzer
        self.capabilities = CapabilityCache()

    # -------------------------------------------------------------------------
    # Cycle loop
    # -------------------------------------------------------------------------

    def run(self, stop_event: threading.Event | None = None) -> None:
        """
        Run cycles until stop_event is set.

        Cancellation is checked between cycles; operations already in
        flight are left to finish on their own.
        """
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            started = time.monotonic()
            self.run_cycle()
            elapsed_ms = (time.monotonic() - started) * 1000
            remaining_ms = self.configuration.cycle_time_ms() - elapsed_ms
            if remaining_ms < 0:
                logger.warning(f"Polling cycle overran by {-remaining_ms:.0f} ms")
                continue
            stop_event.wait(remaining_ms / 1000)
        logger.info("Collector stopped")

    def run_cycle(self) -> list[SnmpOperation]:
        """Start a capability probe for every device; return the operations."""
        try:
            self.configuration.reload()
        except ConfigurationError as e:
            logger.warning(f"Keeping previous configuration: {e}")

        cycle_time = now_ms()
        operations = []
        for address in self.configuration.devices():
            template = Template(CAPABILITY, cycle_time, address)
            operation = self.create_operation(address, template)
            if operation is not None:
                operation.start()
                operations.append(operation)
        logger.debug(f"Started {len(operations)} capability probes")
        return operations

    def create_operation(
        self,
        address: str,
        template: Template,
        document: PluginDocument | None = None,
        listen: bool = True,
    ) -> SnmpOperation | None:
        """
        Prepare an operation for a template.

        Returns:
            The operation, or None if no slot of the template maps to a
            request identifier
        """
        template.document = document
        request = self.engine.prepare(template, document)
        if not request.bindings:
            logger.debug(f"{address}: nothing to request for {template.name}")
            return None
        return SnmpOperation(
            address,
            self.configuration.credentials_for(address),
            template,
            request,
            self.walker,
            listener=self if listen else None,
        )

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def on_stop(self, operation: SnmpOperation) -> None:
        """Handle a finished operation."""
        if not operation.has_responses:
            logger.info(f"{operation.address}: no response for {operation.template.name}")
            return
        if operation.template.template_class is CAPABILITY:
            for dependent in self.capability_response(operation):
                dependent.start()
        else:
            self.dependent_response(operation)

    def capability_response(self, operation: SnmpOperation) -> list[SnmpOperation]:
        """
        Resolve a capability response and prepare the dependent operations.

        The operations are returned unstarted.
        """
        rows = self.engine.resolve(operation.responses or [], operation.template)
        if not rows:
            return []
        capability = rows[0]
        capability.document = self.engine.plugin_store.select_document(capability.get_value("objectId"))
        self.capabilities.put(operation.address, capability)
        logger.debug(f"{operation.address}: using plugin {capability.document.name}")

        operations = []
        for template_class in DEPENDENT_CLASSES:
            template = Template(template_class, capability.time, operation.address)
            dependent = self.create_operation(
                operation.address,
                template,
                capability.document,
                listen=operation.listener is not None,
            )
            if dependent is not None:
                operations.append(dependent)
        return operations

    def dependent_response(self, operation: SnmpOperation) -> list[Template]:
        """Resolve a dependent response and hand every row to the analyzer."""
        # Resolve with the document the request was prepared from
        rows = self.engine.resolve(operation.responses or [], operation.template, operation.template.document)
        for row in rows:
            try:
                self.analyzer.analyze(row)
            except Exception:
                logger.exception(f"{operation.address}: failed to analyze {row.name}")
        return rows

    # -------------------------------------------------------------------------
    # Synchronous probe
    # -------------------------------------------------------------------------

    def probe(self, address: str) -> list[Template]:
        """
        Collect one device on the calling thread.

        Returns:
            The capability template followed by every resolved dependent
            row; empty if the device did not answer the capability probe
        """
        capability_op = self.create_operation(address, Template(CAPABILITY, now_ms(), address), listen=False)
        if capability_op is None:
            return []
        capability_op.run()
        if not capability_op.has_responses:
            logger.info(f"{address}: no response to capability probe")
            return []

        dependents = self.capability_response(capability_op)
        results = [self.capabilities.get(address)]
        for operation in dependents:
            operation.run()
            if operation.has_responses:
                results.extend(self.dependent_response(operation))
        return [template for template in results if template is not None]
