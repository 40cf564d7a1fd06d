"""
Builds collector components from settings.
"""

from __future__ import annotations

import logging

from topopoll.analyzer.analyzer import Analyzer
from topopoll.core.config import CollectorSettings, Configuration
from topopoll.extraction.engine import ExtractionEngine
from topopoll.mib.registry import PysnmpSymbolRegistry, StaticSymbolRegistry, SymbolRegistry
from topopoll.plugins.store import PluginStore, bundled_directory
from topopoll.scheduler import Collector
from topopoll.snmp.transport import SnmpTransport
from topopoll.snmp.walker import ProtocolWalker
from topopoll.store.base import GraphStore
from topopoll.store.http import HttpGraphStore
from topopoll.store.memory import MemoryGraphStore

logger = logging.getLogger(__name__)


def build_registry(settings: CollectorSettings) -> SymbolRegistry:
    """
    Symbol registry: the static table (plus symbols_file), backed by
    compiled MIBs when mibs_dir is set.
    """
    if settings.symbols_file is not None:
        static = StaticSymbolRegistry.from_file(settings.symbols_file)
    else:
        static = StaticSymbolRegistry()
    if settings.mibs_dir is None:
        return static
    return PysnmpSymbolRegistry(settings.mibs_dir, fallback=static)


def build_plugin_store(settings: CollectorSettings) -> PluginStore:
    """
    Raises:
        PluginLoadError: If the plugin set cannot be loaded
    """
    directory = settings.plugins_dir or bundled_directory()
    return PluginStore.from_directory(directory, settings.default_plugin)


def build_graph_store(settings: CollectorSettings) -> GraphStore:
    if settings.store_url:
        logger.info(f"Forwarding results to {settings.store_url}")
        return HttpGraphStore(settings.store_url, timeout=settings.store_timeout)
    return MemoryGraphStore()


def build_collector(
    settings: CollectorSettings,
    configuration: Configuration,
    store: GraphStore | None = None,
) -> Collector:
    """
    Wire a collector together.

    Raises:
        PluginLoadError: If the plugin set cannot be loaded
        ConfigurationError: If the symbols file is invalid
    """
    engine = ExtractionEngine(build_plugin_store(settings), build_registry(settings))
    walker = ProtocolWalker(
        SnmpTransport(),
        max_request_size=configuration.max_request_size(),
        max_walk_rounds=configuration.max_walk_rounds(),
    )
    analyzer = Analyzer(store if store is not None else build_graph_store(settings))
    return Collector(configuration, engine, walker, analyzer)
