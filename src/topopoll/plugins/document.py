"""
Plugin document model.

A plugin document is a declarative tree keyed by entity class name, then
attribute name. Every attribute maps to a rule:

- LiteralRule: verbatim text
- SymbolRule: a MIB symbol whose returned value is the attribute
- DependentRule: another attribute's value (or returned identifier),
  passed through an optional transform pipeline

Rules that fail to parse are kept as InvalidRule so a single bad attribute
degrades to "unset" at resolution time instead of rejecting the document.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union


class ValueSource(str, Enum):
    """What a dependent rule reads from its reference."""

    VALUE = "value"
    IDENTIFIER = "identifier"


@dataclass(frozen=True)
class RuleRef:
    """Reference to another attribute rule."""

    class_name: str
    attribute: str

    def __str__(self) -> str:
        return f"{self.class_name}.{self.attribute}"


# =============================================================================
# Transforms
# =============================================================================


@dataclass(frozen=True)
class Substring:
    """Suffix of the input starting at a character offset."""

    start: int
    then: Transform | None = None


@dataclass(frozen=True)
class Split:
    """
    One piece of the input split on a delimiter.

    The delimiter is literal unless regex is set. Regex splits drop
    trailing empty pieces, as legacy XML documents expect.
    """

    delimiter: str
    pick: int = 0
    then: Transform | None = None
    regex: bool = False


@dataclass(frozen=True)
class Switch:
    """Lookup of the input in named cases; unknown inputs pass through."""

    cases: Mapping[str, Rule]
    then: Transform | None = None


@dataclass(frozen=True)
class Match:
    """First pattern found in the input selects a replacement rule."""

    cases: tuple[tuple[re.Pattern[str], Rule], ...]
    default: Rule | None = None
    then: Transform | None = None


Transform = Union[Substring, Split, Switch, Match]


# =============================================================================
# Rules
# =============================================================================


@dataclass(frozen=True)
class LiteralRule:
    text: str


@dataclass(frozen=True)
class SymbolRule:
    """A MIB symbol; module is the real module name, aliases already expanded."""

    symbol: str
    module: str


@dataclass(frozen=True)
class DependentRule:
    ref: RuleRef
    use: ValueSource = ValueSource.VALUE
    transform: Transform | None = None


@dataclass(frozen=True)
class InvalidRule:
    """Placeholder for a rule that could not be parsed."""

    reason: str


Rule = Union[LiteralRule, SymbolRule, DependentRule, InvalidRule]


# =============================================================================
# Document
# =============================================================================


@dataclass
class PluginDocument:
    """
    One parsed plugin document.

    Attributes:
        name: Document name (file stem unless declared)
        pattern: Capability pattern searched in the reported object id;
                 None for the default document
        classes: Class name -> attribute name -> rule
        source: File the document was loaded from
    """

    name: str
    pattern: re.Pattern[str] | None = None
    classes: dict[str, dict[str, Rule]] = field(default_factory=dict)
    source: Path | None = None

    def __repr__(self) -> str:
        pattern = self.pattern.pattern if self.pattern else None
        return f"PluginDocument({self.name!r}, pattern={pattern!r})"

    @property
    def is_default(self) -> bool:
        return self.pattern is None

    def has_class(self, class_name: str) -> bool:
        return class_name in self.classes

    def rule(self, class_name: str, attribute: str) -> Rule | None:
        """Return this document's own rule, without fallback."""
        return self.classes.get(class_name, {}).get(attribute)

    def match_span(self, reported_id: str) -> int | None:
        """Length of the pattern match within reported_id, or None."""
        if self.pattern is None:
            return None
        found = self.pattern.search(reported_id)
        if found is None:
            return None
        return found.end() - found.start()
