"""
Extraction engine.

Interprets plugin document rules twice per operation:

- prepare(): before the walk, turns every symbol-bound attribute of a
  template into a request OID
- resolve(): after the walk, turns each returned row into a filled template

Resolution never raises. Unknown symbols, missing bindings, malformed rules
and dependency cycles all degrade the affected slot to unset.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from topopoll.core.exceptions import (
    DependencyCycleError,
    MalformedRuleError,
    ResolutionError,
    SymbolNotFoundError,
)
from topopoll.mib.registry import SymbolInfo, SymbolRegistry
from topopoll.models.pdu import Pdu
from topopoll.models.templates import Template
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
from topopoll.plugins.store import PluginStore

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """
    Memo for one prepare or resolve pass over one template.

    Every (class, attribute) result and every registry lookup is computed
    at most once per pass. The visiting list holds the chain currently
    being evaluated and detects cycles.
    """

    template: Template
    document: PluginDocument | None
    response: Pdu | None = None
    values: dict[RuleRef, str | None] = field(default_factory=dict)
    identifiers: dict[RuleRef, str | None] = field(default_factory=dict)
    request_oids: dict[RuleRef, list[str]] = field(default_factory=dict)
    symbols: dict[tuple[str, str], SymbolInfo | SymbolNotFoundError] = field(default_factory=dict)
    visiting: list[RuleRef] = field(default_factory=list)

    def enter(self, ref: RuleRef) -> None:
        if ref in self.visiting:
            path = [str(r) for r in self.visiting[self.visiting.index(ref):]] + [str(ref)]
            raise DependencyCycleError(path)
        self.visiting.append(ref)

    def leave(self, ref: RuleRef) -> None:
        self.visiting.remove(ref)

    def owns(self, ref: RuleRef) -> bool:
        """True if ref names a slot of the template being resolved."""
        return ref.class_name == self.template.name and ref.attribute in self.template.slots


class ExtractionEngine:
    """
    Declarative rule interpreter.

    Example:
        engine = ExtractionEngine(PluginStore.bundled(), StaticSymbolRegistry())
        request = engine.prepare(template, document)
        # ... walk ...
        rows = engine.resolve(responses, template, document)
    """

    def __init__(self, plugin_store: PluginStore, registry: SymbolRegistry):
        self.plugin_store = plugin_store
        self.registry = registry

    # -------------------------------------------------------------------------
    # Prepare
    # -------------------------------------------------------------------------

    def prepare(self, template: Template, document: PluginDocument | None = None) -> Pdu:
        """
        Build the request PDU for a template.

        Each slot whose rule is transitively bound to a symbol contributes
        the symbol's request OID once, and records it as the slot's request
        identifier. Slots without a rule are skipped.
        """
        request = Pdu(kind=template.operation)
        context = ResolutionContext(template, document)
        for slot in template.slots:
            ref = RuleRef(template.name, slot)
            try:
                oids = self._request_oids(context, ref)
            except ResolutionError as e:
                logger.debug(f"Cannot prepare {ref}: {e}")
                continue
            if not oids:
                continue
            template.set_oid(slot, oids[0])
            for oid in oids:
                if oid not in request.oids:
                    request.add(oid)
        return request

    def _request_oids(self, context: ResolutionContext, ref: RuleRef) -> list[str]:
        if ref in context.request_oids:
            return context.request_oids[ref]
        rule = self.plugin_store.lookup(context.document, ref.class_name, ref.attribute)
        if rule is None:
            context.request_oids[ref] = []
            return []
        context.enter(ref)
        try:
            oids = self._rule_oids(context, rule, ref)
        finally:
            context.leave(ref)
        context.request_oids[ref] = oids
        return oids

    def _rule_oids(self, context: ResolutionContext, rule: Rule, owner: RuleRef) -> list[str]:
        if isinstance(rule, LiteralRule):
            return []
        if isinstance(rule, SymbolRule):
            return [self._symbol(context, rule).request_oid]
        if isinstance(rule, InvalidRule):
            raise MalformedRuleError(owner.class_name, owner.attribute, rule.reason)

        oids = list(self._request_oids(context, rule.ref))
        for nested in _transform_rules(rule.transform):
            for oid in self._rule_oids(context, nested, owner):
                if oid not in oids:
                    oids.append(oid)
        return oids

    # -------------------------------------------------------------------------
    # Resolve
    # -------------------------------------------------------------------------

    def resolve(
        self,
        responses: list[Pdu],
        template: Template,
        document: PluginDocument | None = None,
    ) -> list[Template]:
        """
        Resolve one filled template per response row.

        The input template is not modified; each row gets its own clone.
        """
        results = []
        for response in responses:
            row = template.clone()
            self.resolve_row(row, response, document)
            results.append(row)
        return results

    def resolve_row(self, template: Template, response: Pdu, document: PluginDocument | None = None) -> None:
        """Fill the unset slots of a template from one response row."""
        context = ResolutionContext(template, document, response)
        for slot in template.slots:
            if template.has_value(slot):
                continue
            ref = RuleRef(template.name, slot)
            try:
                self._value(context, ref)
            except ResolutionError as e:
                logger.debug(f"{template.device}: {ref} unresolved: {e}")

    def _value(self, context: ResolutionContext, ref: RuleRef) -> str | None:
        """Resolve the value of an attribute, memoized per pass."""
        if ref in context.values:
            return context.values[ref]
        if context.owns(ref) and context.template.has_value(ref.attribute):
            return context.template.get_value_as_string(ref.attribute)

        rule = self.plugin_store.lookup(context.document, ref.class_name, ref.attribute)
        if rule is None:
            value = None
        else:
            context.enter(ref)
            try:
                value = self._evaluate(context, rule, ref)
            finally:
                context.leave(ref)

        if value is not None:
            value = value.strip() or None
        context.values[ref] = value
        if value is not None and context.owns(ref):
            context.template.set_value(ref.attribute, value)
        return value

    def _identifier(self, context: ResolutionContext, ref: RuleRef) -> str | None:
        """Resolve the identifier of the binding behind an attribute."""
        self._value(context, ref)
        return context.identifiers.get(ref)

    def _evaluate(self, context: ResolutionContext, rule: Rule, owner: RuleRef) -> str | None:
        if isinstance(rule, LiteralRule):
            return rule.text

        if isinstance(rule, SymbolRule):
            info = self._symbol(context, rule)
            binding = context.response.first_under(info.request_oid) if context.response else None
            if binding is None or not binding.has_value:
                return None
            context.identifiers.setdefault(owner, binding.oid)
            return _render(info, binding.value)

        if isinstance(rule, InvalidRule):
            raise MalformedRuleError(owner.class_name, owner.attribute, rule.reason)

        if rule.use == ValueSource.IDENTIFIER:
            dependency = self._identifier(context, rule.ref)
        else:
            dependency = self._value(context, rule.ref)
        if rule.ref in context.identifiers:
            context.identifiers.setdefault(owner, context.identifiers[rule.ref])
        return self._apply(context, rule.transform, dependency, owner)

    def _apply(
        self,
        context: ResolutionContext,
        transform: Transform | None,
        value: str | None,
        owner: RuleRef,
    ) -> str | None:
        """Run a value through a transform pipeline."""
        if transform is None or value is None:
            return value

        if isinstance(transform, Substring):
            if transform.start < 0 or transform.start > len(value):
                return None
            return self._apply(context, transform.then, value[transform.start:], owner)

        if isinstance(transform, Split):
            if transform.regex:
                pieces = re.split(transform.delimiter, value)
                while len(pieces) > 1 and not pieces[-1]:
                    pieces.pop()
            else:
                pieces = value.split(transform.delimiter)
            if not -len(pieces) <= transform.pick < len(pieces):
                return None
            return self._apply(context, transform.then, pieces[transform.pick], owner)

        if isinstance(transform, Switch):
            case = transform.cases.get(value)
            if case is None:
                return value
            return self._apply(context, transform.then, self._evaluate(context, case, owner), owner)

        if isinstance(transform, Match):
            for pattern, replacement in transform.cases:
                if pattern.search(value):
                    return self._apply(context, transform.then, self._evaluate(context, replacement, owner), owner)
            if transform.default is None:
                return None
            return self._apply(context, transform.then, self._evaluate(context, transform.default, owner), owner)

        raise MalformedRuleError(owner.class_name, owner.attribute, f"unknown transform {transform!r}")

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def _symbol(self, context: ResolutionContext, rule: SymbolRule) -> SymbolInfo:
        key = (rule.module, rule.symbol)
        if key not in context.symbols:
            try:
                context.symbols[key] = self.registry.resolve_symbol(rule.module, rule.symbol)
            except SymbolNotFoundError as e:
                context.symbols[key] = e
        found = context.symbols[key]
        if isinstance(found, SymbolNotFoundError):
            raise found
        return found


def _transform_rules(transform: Transform | None) -> list[Rule]:
    """Every rule nested inside a transform pipeline."""
    rules: list[Rule] = []
    while transform is not None:
        if isinstance(transform, Switch):
            rules.extend(transform.cases.values())
        elif isinstance(transform, Match):
            rules.extend(rule for _, rule in transform.cases)
            if transform.default is not None:
                rules.append(transform.default)
        transform = transform.then
    return rules


def _render(info: SymbolInfo, value: int | str) -> str:
    """Stringify a returned value, translating enumerations to their names."""
    if info.is_enumerated:
        try:
            number = int(value)
        except (TypeError, ValueError):
            return str(value)
        name = info.enum_name(number)
        if name is not None:
            return name
    return str(value)
