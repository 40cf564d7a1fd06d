"""
Tests for symbol registries.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from topopoll.core.exceptions import ConfigValidationError, SymbolNotFoundError
from topopoll.mib.registry import PysnmpSymbolRegistry, StaticSymbolRegistry, SymbolInfo, symbol_from_dict


class TestSymbolInfo:
    """Tests for SymbolInfo."""

    def test_scalar_request_oid(self) -> None:
        assert SymbolInfo("1.3.6.1.2.1.1.5", is_scalar=True).request_oid == "1.3.6.1.2.1.1.5.0"

    def test_column_request_oid(self) -> None:
        assert SymbolInfo("1.3.6.1.2.1.2.2.1.1").request_oid == "1.3.6.1.2.1.2.2.1.1"

    def test_enum_name_contiguous(self) -> None:
        info = SymbolInfo("1", syntax_kind="Integer", enum_symbols=(("up", 1), ("down", 2)))

        assert info.enum_name(2) == "down"

    def test_enum_name_sparse(self) -> None:
        info = SymbolInfo("1", syntax_kind="Integer", enum_symbols=(("other", 1), ("ethernetCsmacd", 6)))

        assert info.enum_name(6) == "ethernetCsmacd"
        assert info.enum_name(3) is None

    def test_not_enumerated_without_symbols(self) -> None:
        assert not SymbolInfo("1", syntax_kind="Integer").is_enumerated


class TestSymbolFromDict:
    """Tests for symbol_from_dict()."""

    def test_enums_imply_integer(self) -> None:
        info = symbol_from_dict("X-MIB", "state", {"oid": ".1.3.6.1.4.1.99.1", "enums": {"on": 1, "off": 2}})

        assert info.oid == "1.3.6.1.4.1.99.1"
        assert info.syntax_kind == "Integer"
        assert info.enum_symbols == (("on", 1), ("off", 2))

    def test_bad_oid(self) -> None:
        with pytest.raises(ConfigValidationError):
            symbol_from_dict("X-MIB", "state", {"oid": "iso.org"})


class TestStaticSymbolRegistry:
    """Tests for StaticSymbolRegistry."""

    def test_standard_symbols(self) -> None:
        info = StaticSymbolRegistry().resolve_symbol("SNMPv2-MIB", "sysName")

        assert info.request_oid == "1.3.6.1.2.1.1.5.0"

    def test_unknown_symbol(self) -> None:
        with pytest.raises(SymbolNotFoundError):
            StaticSymbolRegistry().resolve_symbol("IF-MIB", "ifBogus")

    def test_without_standard(self) -> None:
        assert len(StaticSymbolRegistry(include_standard=False)) == 0

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "symbols.yaml"
        path.write_text(
            "CISCO-PRODUCTS:\n"
            "  chassisSerial: {oid: 1.3.6.1.4.1.9.3.6.3, scalar: true}\n"
        )

        registry = StaticSymbolRegistry.from_file(path)

        assert registry.resolve_symbol("CISCO-PRODUCTS", "chassisSerial").request_oid == "1.3.6.1.4.1.9.3.6.3.0"
        assert registry.resolve_symbol("IF-MIB", "ifIndex").oid == "1.3.6.1.2.1.2.2.1.1"

    def test_from_file_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "symbols.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigValidationError):
            StaticSymbolRegistry.from_file(path)


class TestPysnmpSymbolRegistry:
    """Tests for the pysnmp-backed registry."""

    def test_fallback_used_for_unknown_module(self) -> None:
        fallback = MagicMock()
        fallback.resolve_symbol.return_value = SymbolInfo("1.2.3")
        registry = PysnmpSymbolRegistry(fallback=fallback)

        info = registry.resolve_symbol("NO-SUCH-MIB", "thing")

        assert info.oid == "1.2.3"
        fallback.resolve_symbol.assert_called_once_with("NO-SUCH-MIB", "thing")

    def test_results_cached(self) -> None:
        fallback = MagicMock()
        fallback.resolve_symbol.return_value = SymbolInfo("1.2.3")
        registry = PysnmpSymbolRegistry(fallback=fallback)

        registry.resolve_symbol("NO-SUCH-MIB", "thing")
        registry.resolve_symbol("NO-SUCH-MIB", "thing")

        assert fallback.resolve_symbol.call_count == 1

    def test_unknown_without_fallback(self) -> None:
        with pytest.raises(SymbolNotFoundError):
            PysnmpSymbolRegistry().resolve_symbol("NO-SUCH-MIB", "thing")

    def test_compiled_scalar_resolved(self) -> None:
        info = PysnmpSymbolRegistry().resolve_symbol("SNMPv2-MIB", "sysDescr")

        assert info.oid == "1.3.6.1.2.1.1.1"
        assert info.is_scalar

    def test_textual_convention_is_not_an_object(self) -> None:
        with pytest.raises(SymbolNotFoundError):
            PysnmpSymbolRegistry().resolve_symbol("SNMPv2-TC", "DisplayString")

    def test_textual_convention_uses_fallback(self) -> None:
        fallback = MagicMock()
        fallback.resolve_symbol.return_value = SymbolInfo("1.2.3")

        info = PysnmpSymbolRegistry(fallback=fallback).resolve_symbol("SNMPv2-TC", "DisplayString")

        assert info.oid == "1.2.3"
