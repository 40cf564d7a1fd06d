"""
Configuration management for topopoll.

Handles loading settings from environment variables and .env files, and
the device/credential configuration from a YAML file, with pydantic
validation throughout.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from topopoll.constants import PluginDefaults, SNMPDefaults
from topopoll.core.exceptions import ConfigFileNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# SNMP Credentials
# =============================================================================


class CommunityCredentials(BaseModel):
    """SNMPv1/v2c credentials using a community string."""

    model_config = ConfigDict(frozen=True)

    version: Literal["1", "2c"] = "2c"
    community: SecretStr = Field(default=SecretStr(SNMPDefaults.COMMUNITY))
    port: Annotated[int, Field(default=SNMPDefaults.PORT, ge=1, le=65535)]
    timeout: Annotated[float, Field(default=SNMPDefaults.TIMEOUT, gt=0, le=60)]
    retries: Annotated[int, Field(default=SNMPDefaults.RETRIES, ge=0, le=10)]

    @field_validator("version", mode="before")
    @classmethod
    def normalize_version(cls, v: object) -> object:
        """Accept 1, 2, "v2c" and similar spellings."""
        text = str(v).lower().lstrip("v")
        return "2c" if text == "2" else text


class UsmCredentials(BaseModel):
    """SNMPv3 credentials with authentication and privacy."""

    model_config = ConfigDict(frozen=True)

    version: Literal["3"] = "3"
    username: str
    auth_password: SecretStr
    priv_password: SecretStr
    auth_protocol: Annotated[str, Field(default="SHA", pattern=r"^(MD5|SHA|SHA256)$")]
    priv_protocol: Annotated[
        str, Field(default="AES128", pattern=r"^(DES|3DES|AES128|AES192|AES256)$")
    ]
    port: Annotated[int, Field(default=SNMPDefaults.PORT, ge=1, le=65535)]
    timeout: Annotated[float, Field(default=SNMPDefaults.TIMEOUT, gt=0, le=60)]
    retries: Annotated[int, Field(default=SNMPDefaults.RETRIES, ge=0, le=10)]


# Union type for one credential set
CredentialSet = Union[CommunityCredentials, UsmCredentials]


# =============================================================================
# Collector Configuration (YAML)
# =============================================================================


class SNMPSection(BaseModel):
    """Polling parameters shared by every device."""

    model_config = ConfigDict(extra="ignore")

    cycle_time_ms: Annotated[int, Field(default=SNMPDefaults.CYCLE_TIME_MS, ge=1)]
    max_request_size: Annotated[int, Field(default=SNMPDefaults.MAX_REQUEST_SIZE, ge=1)]
    max_walk_rounds: Annotated[int, Field(default=SNMPDefaults.MAX_WALK_ROUNDS, ge=1)]
    timeout: Annotated[float, Field(default=SNMPDefaults.TIMEOUT, gt=0, le=60)]
    retries: Annotated[int, Field(default=SNMPDefaults.RETRIES, ge=0, le=10)]
    port: Annotated[int, Field(default=SNMPDefaults.PORT, ge=1, le=65535)]


class DeviceDeclaration(BaseModel):
    """
    A group of devices sharing an ordered list of credentials.

    Attributes:
        id: Declaration identifier
        addresses: Individual device addresses
        cidr: CIDR blocks expanded to every host address
        credentials: Ordered credential names, tried first to last
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    addresses: list[str] = Field(default_factory=list)
    cidr: list[str] = Field(default_factory=list)
    credentials: list[str] = Field(default_factory=list)

    @field_validator("cidr")
    @classmethod
    def validate_cidr(cls, v: list[str]) -> list[str]:
        """Reject malformed or oversized CIDR blocks early."""
        for block in v:
            network = ipaddress.ip_network(block, strict=False)
            if network.num_addresses > SNMPDefaults.MAX_CIDR_HOSTS:
                raise ValueError(
                    f"CIDR block {block} covers more than {SNMPDefaults.MAX_CIDR_HOSTS} addresses"
                )
        return v

    def expand(self) -> list[str]:
        """Return every address covered by this declaration."""
        result = list(self.addresses)
        for block in self.cidr:
            network = ipaddress.ip_network(block, strict=False)
            hosts = list(network.hosts()) or [network.network_address]
            result.extend(str(host) for host in hosts)
        return result


class CollectorConfig(BaseModel):
    """Top-level YAML configuration file."""

    model_config = ConfigDict(extra="ignore")

    snmp: SNMPSection = Field(default_factory=SNMPSection)
    credentials: dict[str, dict[str, object]] = Field(default_factory=dict)
    devices: list[DeviceDeclaration] = Field(default_factory=list)


# =============================================================================
# Main Settings
# =============================================================================


class CollectorSettings(BaseSettings):
    """
    Main settings for topopoll, loaded from environment and .env files.

    Environment variables (prefix TOPOPOLL_):
        TOPOPOLL_CONFIG_FILE, TOPOPOLL_PLUGINS_DIR, TOPOPOLL_MIBS_DIR
        TOPOPOLL_DEFAULT_PLUGIN, TOPOPOLL_SYMBOLS_FILE, TOPOPOLL_STORE_URL
        TOPOPOLL_DEBUG, TOPOPOLL_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="TOPOPOLL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    config_file: Path = Path("topopoll.yaml")
    plugins_dir: Path | None = None
    mibs_dir: Path | None = None
    symbols_file: Path | None = None
    default_plugin: str = PluginDefaults.DEFAULT_DOCUMENT

    # Downstream graph store; empty keeps results in memory
    store_url: str = ""
    store_timeout: Annotated[int, Field(default=30, ge=1, le=300)]

    # Logging
    debug: bool = False
    log_level: Annotated[str, Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")]


# =============================================================================
# Singleton Settings Access
# =============================================================================

_settings: CollectorSettings | None = None


def get_settings() -> CollectorSettings:
    """
    Get the global settings instance.

    Creates a new instance on first call, returns cached instance thereafter.
    """
    global _settings
    if _settings is None:
        _settings = CollectorSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


# =============================================================================
# Configuration Facade
# =============================================================================


def build_credentials(name: str, raw: dict[str, object], snmp: SNMPSection) -> CredentialSet:
    """
    Build one credential set, filling transport defaults from the snmp section.

    Raises:
        ConfigValidationError: If the credential definition is invalid
    """
    data: dict[str, object] = {
        "port": snmp.port,
        "timeout": snmp.timeout,
        "retries": snmp.retries,
    }
    data.update(raw)
    version = str(data.get("version", "2c")).lower().lstrip("v")
    try:
        if version == "3":
            data["version"] = "3"
            return UsmCredentials.model_validate(data)
        if "read_community" in data and "community" not in data:
            data["community"] = data.pop("read_community")
        return CommunityCredentials.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"credentials.{name}", raw, str(e)) from e


@dataclass(frozen=True)
class _ConfigState:
    """One loaded configuration: the file model, its credentials and device index."""

    config: CollectorConfig
    credentials: dict[str, CredentialSet]
    devices: dict[str, tuple[CredentialSet, ...]]


def _build_state(config: CollectorConfig) -> _ConfigState:
    credentials = {name: build_credentials(name, raw, config.snmp) for name, raw in config.credentials.items()}
    devices: dict[str, tuple[CredentialSet, ...]] = {}
    for declaration in config.devices:
        for ref in declaration.credentials:
            if ref not in credentials:
                raise ConfigValidationError(f"devices.{declaration.id}.credentials", ref, "unknown credential name")
        ordered = tuple(credentials[ref] for ref in declaration.credentials)
        # First declaration naming an address decides its credentials
        for address in declaration.expand():
            devices.setdefault(address, ordered)
    return _ConfigState(config, credentials, devices)


class Configuration:
    """
    Read access to the device and credential configuration.

    The device index is built once per load; reload() replaces it in a
    single assignment so concurrent readers see either the old or the new
    configuration, never a mix.
    """

    def __init__(self, config: CollectorConfig, default_document: str = PluginDefaults.DEFAULT_DOCUMENT):
        self._state = _build_state(config)
        self._default_document = default_document
        self._path: Path | None = None

    @classmethod
    def from_file(cls, path: Path, default_document: str = PluginDefaults.DEFAULT_DOCUMENT) -> Configuration:
        """
        Load configuration from a YAML file.

        Raises:
            ConfigFileNotFoundError: If the file does not exist
            ConfigValidationError: If the file is malformed
        """
        instance = cls(_read_config(path), default_document)
        instance._path = path
        return instance

    @classmethod
    def from_settings(cls, settings: CollectorSettings) -> Configuration:
        """Load the configuration file named by the settings."""
        return cls.from_file(settings.config_file, settings.default_plugin)

    @property
    def snmp(self) -> SNMPSection:
        """Polling parameters."""
        return self._state.config.snmp

    def reload(self) -> None:
        """Re-read the backing file, if any."""
        if self._path is None:
            return
        self._state = _build_state(_read_config(self._path))

    def devices(self) -> list[str]:
        """Return every configured device address, without duplicates."""
        return list(self._state.devices)

    def credentials_for(self, address: str) -> list[CredentialSet]:
        """Return the ordered credential sets for a device address."""
        credentials = self._state.devices.get(address)
        if credentials is None:
            logger.warning(f"Device {address} is not declared")
            return []
        return list(credentials)

    def cycle_time_ms(self) -> int:
        return self._state.config.snmp.cycle_time_ms

    def max_request_size(self) -> int:
        return self._state.config.snmp.max_request_size

    def max_walk_rounds(self) -> int:
        return self._state.config.snmp.max_walk_rounds

    def default_document_name(self) -> str:
        return self._default_document


def _read_config(path: Path) -> CollectorConfig:
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError("file", str(path), str(e)) from e
    try:
        return CollectorConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError("file", str(path), str(e)) from e
