"""
Symbol registries mapping MIB symbol names to object identifiers.
"""

from __future__ import annotations

from topopoll.mib.registry import (
    PysnmpSymbolRegistry,
    StaticSymbolRegistry,
    SymbolInfo,
    SymbolRegistry,
)

__all__ = ["SymbolInfo", "SymbolRegistry", "StaticSymbolRegistry", "PysnmpSymbolRegistry"]
