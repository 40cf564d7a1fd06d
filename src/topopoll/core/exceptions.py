"""
Exception hierarchy for topopoll.

All exceptions inherit from TopopollError for unified error handling.
Specific exceptions provide detailed context for debugging.
"""

from __future__ import annotations

from typing import Any


class TopopollError(Exception):
    """
    Base exception for all topopoll errors.

    All custom exceptions inherit from this class, allowing callers
    to catch all topopoll errors with a single except clause.

    Attributes:
        message: Human-readable error description
        context: Optional dictionary with additional error context
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TopopollError):
    """
    Error in configuration parsing or validation.

    Raised when:
    - YAML/config file is malformed
    - Required fields are missing
    - Field values fail validation
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Configuration file does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Configuration file not found: {path}", context={"path": path})


class ConfigValidationError(ConfigurationError):
    """
    Configuration validation failed.

    Attributes:
        field: The field that failed validation
        value: The invalid value
        reason: Why validation failed
    """

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Validation failed for '{field}': {reason}",
            context={"field": field, "value": value, "reason": reason},
        )


# =============================================================================
# Plugin Errors
# =============================================================================


class PluginError(TopopollError):
    """Base class for plugin document errors."""

    pass


class PluginLoadError(PluginError):
    """A plugin document could not be read or is structurally invalid."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to load plugin '{path}': {reason}",
            context={"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


# =============================================================================
# SNMP Errors
# =============================================================================


class SNMPError(TopopollError):
    """Base class for SNMP-related errors."""

    pass


class SNMPConnectionError(SNMPError):
    """Failed to reach a device via SNMP."""

    def __init__(self, hostname: str, port: int, reason: str):
        super().__init__(
            f"SNMP connection to {hostname}:{port} failed: {reason}",
            context={"hostname": hostname, "port": port, "reason": reason},
        )
        self.hostname = hostname
        self.port = port
        self.reason = reason


class SNMPTimeoutError(SNMPError):
    """SNMP operation timed out."""

    def __init__(self, hostname: str, oid: str | None = None):
        msg = f"SNMP timeout querying {hostname}"
        if oid:
            msg += f" for OID {oid}"
        super().__init__(msg, context={"hostname": hostname, "oid": oid})
        self.hostname = hostname
        self.oid = oid


# =============================================================================
# Resolution Errors (attribute extraction)
# =============================================================================


class ResolutionError(TopopollError):
    """Base class for attribute resolution errors."""

    pass


class SymbolNotFoundError(ResolutionError):
    """A symbol is unknown to the symbol registry."""

    def __init__(self, module: str, symbol: str):
        super().__init__(
            f"Symbol not found: {module}::{symbol}",
            context={"module": module, "symbol": symbol},
        )
        self.module = module
        self.symbol = symbol


class MalformedRuleError(ResolutionError):
    """A plugin rule is structurally invalid."""

    def __init__(self, class_name: str, attribute: str, reason: str):
        super().__init__(
            f"Malformed rule for {class_name}.{attribute}: {reason}",
            context={"class_name": class_name, "attribute": attribute, "reason": reason},
        )
        self.class_name = class_name
        self.attribute = attribute
        self.reason = reason


class DependencyCycleError(ResolutionError):
    """Attribute rules reference each other in a cycle."""

    def __init__(self, path: list[str]):
        super().__init__(
            f"Dependency cycle: {' -> '.join(path)}",
            context={"path": path},
        )
        self.path = path


# =============================================================================
# Graph Store Errors
# =============================================================================


class StoreError(TopopollError):
    """
    Base class for graph store errors.

    Attributes:
        status_code: HTTP status code (if applicable)
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, context={"status_code": status_code})
        self.status_code = status_code


class StoreConnectionError(StoreError):
    """Failed to reach the graph store."""

    pass


class StoreResponseError(StoreError):
    """The graph store rejected a request."""

    pass
