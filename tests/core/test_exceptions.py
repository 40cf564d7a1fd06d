"""
Tests for the exception hierarchy.
"""

from __future__ import annotations

from topopoll.core.exceptions import (
    ConfigFileNotFoundError,
    ConfigurationError,
    DependencyCycleError,
    MalformedRuleError,
    PluginLoadError,
    ResolutionError,
    StoreConnectionError,
    StoreError,
    SymbolNotFoundError,
    TopopollError,
)


class TestHierarchy:
    """Every error is a TopopollError."""

    def test_subclasses(self) -> None:
        assert issubclass(ConfigFileNotFoundError, ConfigurationError)
        assert issubclass(SymbolNotFoundError, ResolutionError)
        assert issubclass(DependencyCycleError, ResolutionError)
        assert issubclass(StoreConnectionError, StoreError)
        for cls in (ConfigurationError, PluginLoadError, ResolutionError, StoreError):
            assert issubclass(cls, TopopollError)


class TestMessages:
    """Tests for error messages and context."""

    def test_context_in_str(self) -> None:
        error = TopopollError("failed", context={"host": "core1"})

        assert str(error) == "failed (host='core1')"

    def test_plain_str(self) -> None:
        assert str(TopopollError("failed")) == "failed"

    def test_symbol_not_found(self) -> None:
        error = SymbolNotFoundError("IF-MIB", "ifBogus")

        assert error.module == "IF-MIB"
        assert "IF-MIB::ifBogus" in str(error)

    def test_cycle_path(self) -> None:
        error = DependencyCycleError(["interface.a", "interface.b", "interface.a"])

        assert "interface.a -> interface.b -> interface.a" in str(error)

    def test_malformed_rule(self) -> None:
        error = MalformedRuleError("interface", "mtu", "unknown use")

        assert error.attribute == "mtu"
        assert "interface.mtu" in str(error)

    def test_store_status_code(self) -> None:
        assert StoreError("bad", status_code=500).status_code == 500
