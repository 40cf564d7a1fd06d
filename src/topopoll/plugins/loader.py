"""
Plugin document loaders.

Two on-disk formats produce the same rule tree.

YAML (preferred)::

    name: cisco-ios
    capabilities:
      objectId: '^1\\.3\\.6\\.1\\.4\\.1\\.9\\.'
    modules:
      ifmib: IF-MIB
    interface:
      description: {symbol: ifDescr, module: ifmib}
      name:
        ref: description
        substring: 2
      media:
        ref: type
        match:
          - {pattern: ethernet, value: physical}
        default: logical

XML (legacy)::

    <plugin>
      <capabilities><objectId>1.3.6.1.4.1.9</objectId></capabilities>
      <mib><ifmib>IF-MIB</ifmib></mib>
      <interface>
        <description mib="ifmib">ifDescr</description>
        <name interface="description" format="value"><substring start="2"/></name>
      </interface>
    </plugin>

Structural problems with the document as a whole raise PluginLoadError.
Problems confined to one attribute produce an InvalidRule so the rest of
the document stays usable.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from lxml import etree

from topopoll.constants import Patterns, PluginDefaults
from topopoll.core.exceptions import PluginLoadError
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

logger = logging.getLogger(__name__)

# Top-level YAML keys that are not entity class sections
RESERVED_KEYS = frozenset({"name", "capabilities", "modules"})


class _RuleError(Exception):
    """Internal: one attribute rule is malformed."""


def load_document(path: Path, is_default: bool = False) -> PluginDocument:
    """
    Load a plugin document, choosing the parser by file suffix.

    Args:
        path: Document file
        is_default: The default document needs no capability pattern

    Raises:
        PluginLoadError: If the file cannot be read or parsed
    """
    suffix = path.suffix.lower()
    if suffix in PluginDefaults.YAML_SUFFIXES:
        document = load_yaml_document(path)
    elif suffix in PluginDefaults.XML_SUFFIXES:
        document = load_xml_document(path)
    else:
        raise PluginLoadError(str(path), f"unsupported file type '{suffix}'")

    if is_default:
        document.pattern = None
    elif document.pattern is None:
        raise PluginLoadError(str(path), "missing capabilities.objectId pattern")
    return document


def _compile_pattern(path: Path, pattern: Any) -> re.Pattern[str] | None:
    if pattern is None:
        return None
    try:
        return re.compile(str(pattern).strip())
    except re.error as e:
        raise PluginLoadError(str(path), f"invalid capability pattern: {e}") from e


# =============================================================================
# YAML
# =============================================================================


def load_yaml_document(path: Path) -> PluginDocument:
    """Parse a YAML plugin document."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise PluginLoadError(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise PluginLoadError(str(path), "document must be a mapping")

    capabilities = data.get("capabilities") or {}
    if not isinstance(capabilities, dict):
        raise PluginLoadError(str(path), "capabilities must be a mapping")
    modules = data.get("modules") or {}
    if not isinstance(modules, dict):
        raise PluginLoadError(str(path), "modules must be a mapping")
    aliases = {str(k): str(v) for k, v in modules.items()}

    classes: dict[str, dict[str, Rule]] = {}
    for class_name, attributes in data.items():
        if class_name in RESERVED_KEYS:
            continue
        if not isinstance(attributes, dict):
            raise PluginLoadError(str(path), f"class '{class_name}' must be a mapping")
        parser = _YamlRuleParser(str(class_name), aliases)
        classes[str(class_name)] = {
            str(attribute): parser.parse_attribute(str(attribute), raw)
            for attribute, raw in attributes.items()
        }

    return PluginDocument(
        name=str(data.get("name") or path.stem),
        pattern=_compile_pattern(path, capabilities.get("objectId")),
        classes=classes,
        source=path,
    )


class _YamlRuleParser:
    """Turns the YAML form of rules of one class section into Rule objects."""

    def __init__(self, class_name: str, aliases: dict[str, str]):
        self.class_name = class_name
        self.aliases = aliases

    def parse_attribute(self, attribute: str, raw: Any) -> Rule:
        try:
            return self.parse_rule(raw)
        except _RuleError as e:
            logger.warning(f"Invalid rule {self.class_name}.{attribute}: {e}")
            return InvalidRule(str(e))

    def parse_rule(self, raw: Any) -> Rule:
        if isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
            return LiteralRule(str(raw))
        if not isinstance(raw, dict):
            raise _RuleError(f"unsupported rule {raw!r}")
        if "symbol" in raw:
            return self._symbol(raw)
        if "ref" in raw:
            return self._dependent(raw)
        if "literal" in raw:
            return LiteralRule(str(raw["literal"]))
        raise _RuleError(f"rule needs one of symbol, ref or literal: {raw!r}")

    def _symbol(self, raw: dict[str, Any]) -> SymbolRule:
        symbol = str(raw["symbol"]).strip()
        module = raw.get("module")
        qualified = Patterns.QUALIFIED_SYMBOL.match(symbol)
        if qualified:
            module, symbol = qualified.group(1), qualified.group(2)
        if not module:
            raise _RuleError(f"symbol '{symbol}' has no module")
        module = str(module)
        return SymbolRule(symbol=symbol, module=self.aliases.get(module, module))

    def _dependent(self, raw: dict[str, Any]) -> DependentRule:
        ref = raw["ref"]
        if isinstance(ref, dict):
            target = RuleRef(str(ref.get("class", self.class_name)), str(ref.get("attribute", "")))
            use = raw.get("use", raw.get("format", ref.get("use", ValueSource.VALUE.value)))
        else:
            text = str(ref)
            if "." in text:
                class_name, attribute = text.split(".", 1)
            else:
                class_name, attribute = self.class_name, text
            target = RuleRef(class_name, attribute)
            use = raw.get("use", raw.get("format", ValueSource.VALUE.value))
        if not target.attribute:
            raise _RuleError("ref without attribute")
        if use == "oid":
            use = ValueSource.IDENTIFIER.value
        try:
            source = ValueSource(use)
        except ValueError:
            raise _RuleError(f"unknown use '{use}'") from None
        return DependentRule(ref=target, use=source, transform=self.parse_transform(raw))

    def parse_transform(self, raw: Any) -> Transform | None:
        """Parse the highest-precedence transform key of a mapping, if any."""
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise _RuleError(f"transform must be a mapping: {raw!r}")
        then = self.parse_transform(raw.get("then"))

        if "substring" in raw:
            start = raw["substring"]
            if isinstance(start, dict):
                start = start.get("start")
            return Substring(start=self._int(start, "substring"), then=then)

        if "split" in raw:
            spec = raw["split"]
            regex = False
            if isinstance(spec, dict):
                delimiter = spec.get("delimiter")
                pick = self._int(spec.get("pick", 0), "split.pick")
                regex = bool(spec.get("regex", False))
            else:
                delimiter, pick = spec, 0
            if not delimiter:
                raise _RuleError("split needs a non-empty delimiter")
            if regex:
                _check_pattern(str(delimiter))
            return Split(delimiter=str(delimiter), pick=pick, then=then, regex=regex)

        if "switch" in raw:
            cases = raw["switch"]
            if not isinstance(cases, dict):
                raise _RuleError("switch cases must be a mapping")
            return Switch(cases={str(k): self.parse_rule(v) for k, v in cases.items()}, then=then)

        if "match" in raw:
            return self._match(raw, then)

        return then

    def _match(self, raw: dict[str, Any], then: Transform | None) -> Match:
        entries = raw["match"]
        if isinstance(entries, dict):
            entries = [{"pattern": k, "value": v} for k, v in entries.items()]
        if not isinstance(entries, list):
            raise _RuleError("match must be a list of {pattern, value}")
        cases = []
        for entry in entries:
            if not isinstance(entry, dict) or "pattern" not in entry or "value" not in entry:
                raise _RuleError(f"match entry needs pattern and value: {entry!r}")
            try:
                pattern = re.compile(str(entry["pattern"]))
            except re.error as e:
                raise _RuleError(f"bad match pattern {entry['pattern']!r}: {e}") from e
            cases.append((pattern, self.parse_rule(entry["value"])))
        default = self.parse_rule(raw["default"]) if "default" in raw else None
        return Match(cases=tuple(cases), default=default, then=then)

    @staticmethod
    def _int(value: Any, what: str) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise _RuleError(f"{what} must be an integer, got {value!r}") from None


# =============================================================================
# XML
# =============================================================================


def _check_pattern(pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise _RuleError(f"bad split pattern {pattern!r}: {e}") from e


def _text(element: etree._Element) -> str:
    """Whitespace-normalized direct text of an element."""
    return " ".join((element.text or "").split())


def _children(element: etree._Element, tag: str | None = None) -> list[etree._Element]:
    return [
        child
        for child in element
        if isinstance(child.tag, str) and (tag is None or child.tag == tag)
    ]


def load_xml_document(path: Path) -> PluginDocument:
    """Parse a legacy XML plugin document."""
    try:
        root = etree.parse(str(path)).getroot()
    except (OSError, etree.XMLSyntaxError) as e:
        raise PluginLoadError(str(path), str(e)) from e

    pattern = None
    object_id = root.find("capabilities/objectId")
    if object_id is not None and _text(object_id):
        pattern = _text(object_id)

    aliases: dict[str, str] = {}
    mib = root.find("mib")
    if mib is not None:
        aliases = {child.tag: _text(child) for child in _children(mib)}

    classes: dict[str, dict[str, Rule]] = {}
    for section in _children(root):
        if section.tag in ("capabilities", "mib"):
            continue
        parser = _XmlRuleParser(section.tag, aliases)
        classes[section.tag] = {
            element.tag: parser.parse_attribute(element) for element in _children(section)
        }

    return PluginDocument(
        name=root.get("name") or path.stem,
        pattern=_compile_pattern(path, pattern),
        classes=classes,
        source=path,
    )


class _XmlRuleParser:
    """Turns XML rule elements of one class section into Rule objects."""

    def __init__(self, class_name: str, aliases: dict[str, str]):
        self.class_name = class_name
        self.aliases = aliases

    def parse_attribute(self, element: etree._Element) -> Rule:
        try:
            return self.parse_rule(element)
        except _RuleError as e:
            logger.warning(f"Invalid rule {self.class_name}.{element.tag}: {e}")
            return InvalidRule(str(e))

    def parse_rule(self, element: etree._Element) -> Rule:
        attributes = list(element.attrib.items())
        if not attributes:
            return LiteralRule(_text(element))

        name, value = attributes[0]
        if name == "mib":
            module = self.aliases.get(value, value)
            return SymbolRule(symbol=_text(element), module=module)

        use = ValueSource.VALUE
        if element.get("format") == "oid":
            use = ValueSource.IDENTIFIER
        return DependentRule(
            ref=RuleRef(name, value),
            use=use,
            transform=self.parse_transform(element),
        )

    def parse_transform(self, element: etree._Element) -> Transform | None:
        """Parse the highest-precedence process child of an element, if any."""
        process = element.find("substring")
        if process is not None:
            start = process.get("start")
            if start is None:
                raise _RuleError("substring needs a start attribute")
            try:
                return Substring(start=int(start), then=self.parse_transform(process))
            except ValueError:
                raise _RuleError(f"substring start must be an integer, got {start!r}") from None

        process = element.find("split")
        if process is not None:
            delimiter = _text(process) or " "
            try:
                pick = int(process.get("substring", "0"))
            except ValueError:
                raise _RuleError("split substring must be an integer") from None
            _check_pattern(delimiter)
            return Split(delimiter=delimiter, pick=pick, then=self.parse_transform(process), regex=True)

        process = element.find("switch")
        if process is not None:
            cases = {case.tag: self.parse_rule(case) for case in _children(process)}
            return Switch(cases=cases)

        matches = _children(element, "match")
        if matches:
            thens = _children(element, "then")
            if len(thens) < len(matches):
                raise _RuleError("every match needs a then")
            cases = []
            for match, then in zip(matches, thens):
                try:
                    cases.append((re.compile(_text(match)), LiteralRule(_text(then))))
                except re.error as e:
                    raise _RuleError(f"bad match pattern {_text(match)!r}: {e}") from e
            default = element.find("default")
            return Match(
                cases=tuple(cases),
                default=LiteralRule(_text(default)) if default is not None else None,
                then=self.parse_transform(matches[0]),
            )

        return None
