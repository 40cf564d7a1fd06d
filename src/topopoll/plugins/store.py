"""
Plugin store: capability-based document selection with fallback.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from importlib import resources
from pathlib import Path

from topopoll.constants import PluginDefaults
from topopoll.core.exceptions import PluginLoadError
from topopoll.plugins.document import PluginDocument, Rule
from topopoll.plugins.loader import load_document

logger = logging.getLogger(__name__)


def bundled_directory() -> Path:
    """Directory holding the plugin documents shipped with the package."""
    return Path(str(resources.files("topopoll.plugins") / "bundled"))


class PluginStore:
    """
    Holds every plugin document, loaded once at startup.

    The default document covers every class and attribute the collector
    knows about. Vendor documents only carry what differs; anything they
    leave out falls through to the default.

    Example:
        store = PluginStore.from_directory(Path("plugins"))
        document = store.select_document("1.3.6.1.4.1.9.1.1208")
        rule = store.lookup(document, "interface", "name")
    """

    def __init__(self, default: PluginDocument, documents: Iterable[PluginDocument] = ()):
        self._default = default
        self._documents = [doc for doc in documents if doc is not default]

    def __len__(self) -> int:
        return len(self._documents) + 1

    @classmethod
    def from_directory(
        cls,
        directory: Path,
        default_name: str = PluginDefaults.DEFAULT_DOCUMENT,
    ) -> PluginStore:
        """
        Load every plugin document in a directory.

        Args:
            directory: Directory holding *.yaml, *.yml and *.xml documents
            default_name: File name of the default document

        Raises:
            PluginLoadError: If the directory or default document is missing,
                or any document fails to load
        """
        if not directory.is_dir():
            raise PluginLoadError(str(directory), "plugin directory does not exist")
        default_path = directory / default_name
        if not default_path.is_file():
            raise PluginLoadError(str(default_path), "default document not found")

        suffixes = PluginDefaults.YAML_SUFFIXES + PluginDefaults.XML_SUFFIXES
        default = load_document(default_path, is_default=True)
        documents = []
        for path in sorted(directory.iterdir()):
            if path == default_path or path.suffix.lower() not in suffixes:
                continue
            documents.append(load_document(path))

        logger.info(f"Loaded {len(documents) + 1} plugin documents from {directory}")
        return cls(default, documents)

    @classmethod
    def bundled(cls) -> PluginStore:
        """Load the documents shipped with the package."""
        return cls.from_directory(bundled_directory())

    @property
    def default(self) -> PluginDocument:
        return self._default

    @property
    def documents(self) -> list[PluginDocument]:
        """Every document, default first."""
        return [self._default, *self._documents]

    def select_document(self, reported_id: str | None) -> PluginDocument:
        """
        Select the document for a device's reported object identifier.

        The document whose capability pattern matches the longest span of
        the identifier wins; equal spans go to the smallest document name.
        Without an identifier, or when nothing matches, the default is used.
        """
        if not reported_id:
            return self._default

        best: PluginDocument | None = None
        best_span = -1
        for document in self._documents:
            span = document.match_span(reported_id)
            if span is None:
                continue
            if span > best_span or (span == best_span and best is not None and document.name < best.name):
                best, best_span = document, span

        if best is None:
            logger.debug(f"No plugin matches {reported_id}, using default")
            return self._default
        logger.debug(f"Selected plugin {best.name} for {reported_id}")
        return best

    def lookup(self, document: PluginDocument | None, class_name: str, attribute: str) -> Rule | None:
        """
        Find the rule for one attribute.

        A class missing from the document falls through to the default; so
        does an attribute missing from a class the document does define.
        """
        if document is not None and document is not self._default:
            rule = document.rule(class_name, attribute)
            if rule is not None:
                return rule
        return self._default.rule(class_name, attribute)
