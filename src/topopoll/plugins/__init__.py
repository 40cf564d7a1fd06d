"""
Plugin documents: declarative, per-vendor attribute extraction rules.
"""

from __future__ import annotations

from topopoll.plugins.document import (
    DependentRule,
    InvalidRule,
    LiteralRule,
    Match,
    PluginDocument,
    Rule,
    RuleRef,
    Split,
    Substring,
    Switch,
    SymbolRule,
    Transform,
    ValueSource,
)
from topopoll.plugins.loader import load_document
from topopoll.plugins.store import PluginStore, bundled_directory

__all__ = [
    "PluginDocument",
    "PluginStore",
    "bundled_directory",
    "load_document",
    "Rule",
    "LiteralRule",
    "SymbolRule",
    "DependentRule",
    "InvalidRule",
    "RuleRef",
    "ValueSource",
    "Transform",
    "Substring",
    "Split",
    "Switch",
    "Match",
]
