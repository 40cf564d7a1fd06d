"""
Tests for YAML and XML plugin document loading.
"""

from __future__ import annotations

import logging

import pytest

from topopoll.core.exceptions import PluginLoadError
from topopoll.plugins.document import (
    DependentRule,
    InvalidRule,
    LiteralRule,
    Match,
    RuleRef,
    Split,
    Substring,
    Switch,
    SymbolRule,
    ValueSource,
)
from topopoll.plugins.loader import load_document

VENDOR_YAML = """\
name: acme
capabilities:
  objectId: '^1\\.3\\.6\\.1\\.4\\.1\\.99\\.'
modules:
  ifmib: IF-MIB
device:
  brand: Acme
  serial: {symbol: "ENTITY-MIB::entPhysicalSerialNum"}
interface:
  description: {symbol: ifDescr, module: ifmib}
  name:
    ref: description
    substring: {start: 2}
    then:
      split: {delimiter: " ", pick: 0}
  portnumber:
    ref: {class: lldpLocalPort, attribute: subtype}
    format: oid
    split: "."
  media:
    ref: type
    switch:
      ethernetCsmacd: physical
      tunnel: {literal: logical}
  alias:
    ref: interface.description
    match:
      uplink: core
    default: {ref: name}
"""

VENDOR_XML = """\
<plugin>
  <capabilities><objectId>^1\\.3\\.6\\.1\\.4\\.1\\.2636\\.</objectId></capabilities>
  <mib><ifmib>IF-MIB</ifmib></mib>
  <device>
    <brand>Juniper</brand>
  </device>
  <interface>
    <description mib="ifmib">ifDescr</description>
    <name interface="description"><substring start="3"/></name>
    <portnumber lldpLocalPort="subtype" format="oid"><split substring="-1">\\.</split></portnumber>
    <media interface="type">
      <switch><ethernetCsmacd>physical</ethernetCsmacd></switch>
    </media>
    <alias interface="description">
      <match>^ge-</match><then>physical</then>
      <match>^lo</match><then>logical</then>
      <default>unknown</default>
    </alias>
  </interface>
</plugin>
"""


class TestYamlDocuments:
    """Tests for the YAML format."""

    def test_header(self, write_plugin) -> None:
        document = load_document(write_plugin("acme.yaml", VENDOR_YAML))

        assert document.name == "acme"
        assert document.match_span("1.3.6.1.4.1.99.1.5") == len("1.3.6.1.4.1.99.")
        assert not document.is_default
        assert set(document.classes) == {"device", "interface"}

    def test_literal_and_symbols(self, write_plugin) -> None:
        document = load_document(write_plugin("acme.yaml", VENDOR_YAML))

        assert document.rule("device", "brand") == LiteralRule("Acme")
        assert document.rule("device", "serial") == SymbolRule("entPhysicalSerialNum", "ENTITY-MIB")
        # module alias expanded
        assert document.rule("interface", "description") == SymbolRule("ifDescr", "IF-MIB")

    def test_substring_then_split(self, write_plugin) -> None:
        rule = load_document(write_plugin("acme.yaml", VENDOR_YAML)).rule("interface", "name")

        assert rule == DependentRule(
            ref=RuleRef("interface", "description"),
            transform=Substring(start=2, then=Split(delimiter=" ", pick=0)),
        )

    def test_identifier_reference(self, write_plugin) -> None:
        rule = load_document(write_plugin("acme.yaml", VENDOR_YAML)).rule("interface", "portnumber")

        assert rule.ref == RuleRef("lldpLocalPort", "subtype")
        assert rule.use == ValueSource.IDENTIFIER
        assert rule.transform == Split(delimiter=".", pick=0)

    def test_switch(self, write_plugin) -> None:
        rule = load_document(write_plugin("acme.yaml", VENDOR_YAML)).rule("interface", "media")

        assert isinstance(rule.transform, Switch)
        assert dict(rule.transform.cases) == {
            "ethernetCsmacd": LiteralRule("physical"),
            "tunnel": LiteralRule("logical"),
        }

    def test_match_mapping_with_default(self, write_plugin) -> None:
        rule = load_document(write_plugin("acme.yaml", VENDOR_YAML)).rule("interface", "alias")

        assert rule.ref == RuleRef("interface", "description")
        assert isinstance(rule.transform, Match)
        ((pattern, value),) = rule.transform.cases
        assert pattern.pattern == "uplink"
        assert value == LiteralRule("core")
        assert rule.transform.default == DependentRule(ref=RuleRef("interface", "name"))

    def test_name_defaults_to_stem(self, write_plugin) -> None:
        document = load_document(
            write_plugin("juniper.yml", "capabilities: {objectId: '2636'}\ndevice: {brand: Juniper}\n")
        )

        assert document.name == "juniper"

    def test_bad_attribute_becomes_invalid_rule(self, write_plugin, caplog) -> None:
        content = VENDOR_YAML + "  mtu: {symbol: ifMtu}\n  type: {ref: description, use: sideways}\n"

        with caplog.at_level(logging.WARNING):
            document = load_document(write_plugin("acme.yaml", content))

        assert isinstance(document.rule("interface", "mtu"), InvalidRule)
        assert isinstance(document.rule("interface", "type"), InvalidRule)
        assert "Invalid rule interface.mtu" in caplog.text
        assert document.rule("interface", "description") == SymbolRule("ifDescr", "IF-MIB")

    @pytest.mark.parametrize(
        "raw",
        [
            "{ref: description, substring: two}",
            "{ref: description, split: {pick: 1}}",
            "{ref: description, match: [{pattern: '(', value: x}]}",
            "{ref: description, match: [{pattern: x}]}",
            "[1, 2]",
            "{unknown: key}",
        ],
    )
    def test_malformed_rules(self, write_plugin, raw: str) -> None:
        content = f"capabilities: {{objectId: '99'}}\ninterface:\n  name: {raw}\n"

        document = load_document(write_plugin("acme.yaml", content))

        assert isinstance(document.rule("interface", "name"), InvalidRule)

    def test_missing_pattern(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError, match="missing capabilities.objectId"):
            load_document(write_plugin("acme.yaml", "device: {brand: Acme}\n"))

    def test_default_needs_no_pattern(self, write_plugin) -> None:
        document = load_document(write_plugin("default.yaml", "device: {brand: Generic}\n"), is_default=True)

        assert document.is_default

    def test_default_pattern_ignored(self, write_plugin) -> None:
        document = load_document(write_plugin("default.yaml", VENDOR_YAML), is_default=True)

        assert document.pattern is None

    def test_invalid_capability_pattern(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError, match="invalid capability pattern"):
            load_document(write_plugin("acme.yaml", "capabilities: {objectId: '1.3.('}\n"))

    def test_not_a_mapping(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError, match="must be a mapping"):
            load_document(write_plugin("acme.yaml", "- a\n- b\n"))

    def test_class_not_a_mapping(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError, match="class 'device'"):
            load_document(write_plugin("acme.yaml", "capabilities: {objectId: '9'}\ndevice: [1]\n"))

    def test_syntax_error(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError):
            load_document(write_plugin("acme.yaml", "device: {brand: [\n"))

    def test_unsupported_suffix(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError, match="unsupported file type"):
            load_document(write_plugin("acme.json", "{}"))


class TestXmlDocuments:
    """Tests for the XML format."""

    def test_header(self, write_plugin) -> None:
        document = load_document(write_plugin("juniper.xml", VENDOR_XML))

        assert document.name == "juniper"
        assert document.match_span("1.3.6.1.4.1.2636.1.1.1.2.21") is not None
        assert set(document.classes) == {"device", "interface"}

    def test_literal_and_symbol(self, write_plugin) -> None:
        document = load_document(write_plugin("juniper.xml", VENDOR_XML))

        assert document.rule("device", "brand") == LiteralRule("Juniper")
        assert document.rule("interface", "description") == SymbolRule("ifDescr", "IF-MIB")

    def test_substring(self, write_plugin) -> None:
        rule = load_document(write_plugin("juniper.xml", VENDOR_XML)).rule("interface", "name")

        assert rule == DependentRule(ref=RuleRef("interface", "description"), transform=Substring(start=3))

    def test_split_on_identifier(self, write_plugin) -> None:
        rule = load_document(write_plugin("juniper.xml", VENDOR_XML)).rule("interface", "portnumber")

        assert rule.ref == RuleRef("lldpLocalPort", "subtype")
        assert rule.use == ValueSource.IDENTIFIER
        assert rule.transform == Split(delimiter="\\.", pick=-1, regex=True)

    def test_split_delimiter_is_a_pattern(self, write_plugin) -> None:
        content = VENDOR_XML.replace(
            "</device>",
            '<model device="description"><split substring="1">[,;]</split></model></device>',
        )

        rule = load_document(write_plugin("juniper.xml", content)).rule("device", "model")

        assert rule.transform == Split(delimiter="[,;]", pick=1, regex=True)

    def test_bad_split_pattern_is_invalid(self, write_plugin) -> None:
        content = VENDOR_XML.replace("</device>", '<model device="description"><split>(</split></model></device>')

        rule = load_document(write_plugin("juniper.xml", content)).rule("device", "model")

        assert isinstance(rule, InvalidRule)

    def test_switch(self, write_plugin) -> None:
        rule = load_document(write_plugin("juniper.xml", VENDOR_XML)).rule("interface", "media")

        assert dict(rule.transform.cases) == {"ethernetCsmacd": LiteralRule("physical")}

    def test_match_then_default(self, write_plugin) -> None:
        rule = load_document(write_plugin("juniper.xml", VENDOR_XML)).rule("interface", "alias")

        assert [(pattern.pattern, value) for pattern, value in rule.transform.cases] == [
            ("^ge-", LiteralRule("physical")),
            ("^lo", LiteralRule("logical")),
        ]
        assert rule.transform.default == LiteralRule("unknown")

    def test_bad_substring(self, write_plugin) -> None:
        content = VENDOR_XML.replace('<substring start="3"/>', '<substring start="x"/>')

        document = load_document(write_plugin("juniper.xml", content))

        assert isinstance(document.rule("interface", "name"), InvalidRule)

    def test_match_without_then(self, write_plugin) -> None:
        content = VENDOR_XML.replace("<then>logical</then>", "")

        document = load_document(write_plugin("juniper.xml", content))

        assert isinstance(document.rule("interface", "alias"), InvalidRule)

    def test_malformed_xml(self, write_plugin) -> None:
        with pytest.raises(PluginLoadError):
            load_document(write_plugin("juniper.xml", "<plugin><device>"))
