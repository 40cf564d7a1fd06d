"""
Symbol registries.

A symbol registry maps a (module, symbol) pair to the numeric object
identifier and syntax metadata the extraction engine needs: whether the
object is a scalar (requested with a trailing .0) and, for enumerated
integers, the declared (name, number) pairs.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import yaml

from topopoll.constants import Patterns
from topopoll.core.exceptions import ConfigValidationError, SymbolNotFoundError
from topopoll.mib.standard import STANDARD_SYMBOLS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolInfo:
    """
    Registry metadata for one object.

    Attributes:
        oid: Dotted object identifier, without instance suffix
        is_scalar: Scalars are requested as oid + ".0"
        syntax_kind: Base syntax name ("Integer", "OctetString", ...)
        enum_symbols: Declared (name, number) pairs, in declaration order
    """

    oid: str
    is_scalar: bool = False
    syntax_kind: str = "OctetString"
    enum_symbols: tuple[tuple[str, int], ...] = ()

    @property
    def is_enumerated(self) -> bool:
        return self.syntax_kind == "Integer" and bool(self.enum_symbols)

    @property
    def request_oid(self) -> str:
        """The identifier placed in a request PDU."""
        return f"{self.oid}.0" if self.is_scalar else self.oid

    def enum_name(self, number: int) -> str | None:
        """
        Translate an enumerated value to its symbolic name.

        Tries direct index alignment first (value 1 at position 0), then
        scans every declared value so non-contiguous enumerations work.
        """
        position = number - 1
        if 0 <= position < len(self.enum_symbols):
            name, declared = self.enum_symbols[position]
            if declared == number:
                return name
        for name, declared in self.enum_symbols:
            if declared == number:
                return name
        return None


class SymbolRegistry(Protocol):
    """Anything that can resolve a symbol name to SymbolInfo."""

    def resolve_symbol(self, module: str, name: str) -> SymbolInfo:
        """
        Resolve a symbol.

        Raises:
            SymbolNotFoundError: If the module or symbol is unknown
        """
        ...


def symbol_from_dict(module: str, name: str, data: dict[str, Any]) -> SymbolInfo:
    """
    Build SymbolInfo from a mapping such as {oid, scalar, syntax, enums}.

    Raises:
        ConfigValidationError: If the OID is missing or malformed
    """
    oid = str(data.get("oid", "")).strip(".")
    if not Patterns.OID.match(oid):
        raise ConfigValidationError(f"{module}::{name}.oid", data.get("oid"), "not a dotted OID")
    enums = data.get("enums") or {}
    return SymbolInfo(
        oid=oid,
        is_scalar=bool(data.get("scalar", False)),
        syntax_kind=str(data.get("syntax", "Integer" if enums else "OctetString")),
        enum_symbols=tuple((str(k), int(v)) for k, v in enums.items()),
    )


class StaticSymbolRegistry:
    """
    Registry backed by an in-memory table.

    Starts from the bundled table of standard MIB objects; further modules
    can be added from YAML files or dictionaries of the form
    ``{MODULE: {symbol: {oid, scalar, syntax, enums}}}``.
    """

    def __init__(self, include_standard: bool = True):
        self._symbols: dict[tuple[str, str], SymbolInfo] = {}
        if include_standard:
            self.update(STANDARD_SYMBOLS)

    def __len__(self) -> int:
        return len(self._symbols)

    def update(self, table: dict[str, dict[str, dict[str, Any]]]) -> None:
        """Add or replace symbols from a nested module -> symbol table."""
        for module, symbols in table.items():
            for name, data in (symbols or {}).items():
                self._symbols[(module, name)] = symbol_from_dict(module, name, data)

    def add(self, module: str, name: str, info: SymbolInfo) -> None:
        self._symbols[(module, name)] = info

    @classmethod
    def from_file(cls, path: Path, include_standard: bool = True) -> StaticSymbolRegistry:
        """
        Load additional symbols from a YAML file.

        Raises:
            ConfigValidationError: If the file is malformed
        """
        registry = cls(include_standard=include_standard)
        try:
            with open(path) as f:
                table = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigValidationError("symbols_file", str(path), str(e)) from e
        if not isinstance(table, dict):
            raise ConfigValidationError("symbols_file", str(path), "expected a mapping of modules")
        registry.update(table)
        return registry

    def resolve_symbol(self, module: str, name: str) -> SymbolInfo:
        try:
            return self._symbols[(module, name)]
        except KeyError:
            raise SymbolNotFoundError(module, name) from None


class PysnmpSymbolRegistry:
    """
    Registry backed by pysnmp's MIB builder.

    Loads compiled (pysnmp-format) MIB modules from the bundled pysnmp
    sources and an optional extra directory. Results are cached; module
    loading is serialized because MibBuilder is not thread-safe.
    """

    def __init__(self, mibs_dir: Path | None = None, fallback: SymbolRegistry | None = None):
        """
        Initialize the registry.

        Args:
            mibs_dir: Directory holding compiled MIB modules
            fallback: Registry consulted when pysnmp cannot resolve a symbol
        """
        from pysnmp.smi import builder

        self._builder = builder.MibBuilder()
        if mibs_dir is not None:
            self._builder.add_mib_sources(builder.DirMibSource(str(mibs_dir)))
        self._fallback = fallback
        self._cache: dict[tuple[str, str], SymbolInfo] = {}
        self._lock = threading.Lock()

    def resolve_symbol(self, module: str, name: str) -> SymbolInfo:
        key = (module, name)
        with self._lock:
            if key in self._cache:
                return self._cache[key]
            try:
                info = self._load(module, name)
            except SymbolNotFoundError:
                if self._fallback is None:
                    raise
                info = self._fallback.resolve_symbol(module, name)
            self._cache[key] = info
            return info

    def _load(self, module: str, name: str) -> SymbolInfo:
        from pyasn1.type import univ
        from pysnmp.smi.error import SmiError

        try:
            self._builder.load_modules(module)
            (node,) = self._builder.import_symbols(module, name)
            scalar_type, column_type = self._builder.import_symbols(
                "SNMPv2-SMI", "MibScalar", "MibTableColumn"
            )
        except (SmiError, ValueError) as e:
            logger.debug(f"pysnmp cannot resolve {module}::{name}: {e}")
            raise SymbolNotFoundError(module, name) from e

        # Only scalars and table columns carry a requestable value
        if not isinstance(node, (scalar_type, column_type)):
            logger.debug(f"{module}::{name} is not a MIB object: {type(node).__name__}")
            raise SymbolNotFoundError(module, name)

        syntax = getattr(node, "syntax", None)
        enum_symbols: tuple[tuple[str, int], ...] = ()
        if isinstance(syntax, univ.Integer):
            syntax_kind = "Integer"
            named = getattr(syntax, "namedValues", None)
            if named:
                enum_symbols = tuple((str(k), int(v)) for k, v in named.items())
        else:
            syntax_kind = type(syntax).__name__ if syntax is not None else "OctetString"

        return SymbolInfo(
            oid=".".join(str(part) for part in node.name),
            is_scalar=isinstance(node, scalar_type) and not isinstance(node, column_type),
            syntax_kind=syntax_kind,
            enum_symbols=enum_symbols,
        )
