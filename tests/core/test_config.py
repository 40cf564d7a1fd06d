"""
Tests for settings and the YAML configuration.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from topopoll.core.config import (
    CollectorConfig,
    CollectorSettings,
    CommunityCredentials,
    Configuration,
    DeviceDeclaration,
    UsmCredentials,
    get_settings,
    reset_settings,
)
from topopoll.core.exceptions import ConfigFileNotFoundError, ConfigValidationError

SAMPLE = """\
snmp:
  cycle_time_ms: 60000
  max_request_size: 5
  timeout: 2.5
credentials:
  v2:
    version: 2c
    read_community: s3cret
  v3:
    version: 3
    username: poller
    auth_password: authpass123
    priv_password: privpass123
    auth_protocol: SHA256
devices:
  - id: core
    addresses: [10.0.0.1]
    credentials: [v3, v2]
  - id: access
    cidr: [10.0.1.0/30]
    addresses: [10.0.0.1]
    credentials: [v2]
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "topopoll.yaml"
    path.write_text(SAMPLE)
    return path


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from TOPOPOLL_* variables and cached settings."""
    for name in ("TOPOPOLL_CONFIG_FILE", "TOPOPOLL_DEBUG", "TOPOPOLL_STORE_URL", "TOPOPOLL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


class TestCredentials:
    """Tests for credential models."""

    def test_community_defaults(self) -> None:
        credentials = CommunityCredentials()

        assert credentials.version == "2c"
        assert credentials.community.get_secret_value() == "public"
        assert credentials.port == 161

    @pytest.mark.parametrize("raw", ["2", "v2c", "2C"])
    def test_version_spellings(self, raw: str) -> None:
        assert CommunityCredentials(version=raw).version == "2c"

    def test_community_hidden_in_repr(self) -> None:
        assert "s3cret" not in repr(CommunityCredentials(community="s3cret"))

    def test_usm_protocol_validated(self) -> None:
        with pytest.raises(ValidationError):
            UsmCredentials(username="u", auth_password="a", priv_password="p", auth_protocol="SHA512")


class TestDeviceDeclaration:
    """Tests for DeviceDeclaration."""

    def test_expand_cidr(self) -> None:
        declaration = DeviceDeclaration(id="x", cidr=["192.0.2.0/30"], addresses=["10.0.0.1"])

        assert declaration.expand() == ["10.0.0.1", "192.0.2.1", "192.0.2.2"]

    def test_single_host_block(self) -> None:
        assert DeviceDeclaration(id="x", cidr=["192.0.2.9/32"]).expand() == ["192.0.2.9"]

    def test_bad_cidr(self) -> None:
        with pytest.raises(ValidationError):
            DeviceDeclaration(id="x", cidr=["192.0.2.0/33"])

    @pytest.mark.parametrize("block", ["2001:db8::/64", "10.0.0.0/15"])
    def test_oversized_cidr(self, block: str) -> None:
        with pytest.raises(ValidationError, match="covers more than"):
            DeviceDeclaration(id="x", cidr=[block])

    def test_largest_allowed_block(self) -> None:
        assert len(DeviceDeclaration(id="x", cidr=["10.0.0.0/16"]).expand()) == 65534


class TestConfiguration:
    """Tests for the Configuration facade."""

    def test_from_file(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)

        assert configuration.cycle_time_ms() == 60000
        assert configuration.max_request_size() == 5
        assert configuration.max_walk_rounds() == 65536
        assert configuration.default_document_name() == "default.yaml"

    def test_devices_deduplicated_in_order(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)

        assert configuration.devices() == ["10.0.0.1", "10.0.1.1", "10.0.1.2"]

    def test_credentials_order(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)

        v3, v2 = configuration.credentials_for("10.0.0.1")

        assert isinstance(v3, UsmCredentials)
        assert v3.auth_protocol == "SHA256"
        assert v2.community.get_secret_value() == "s3cret"

    def test_snmp_section_fills_credential_defaults(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)

        (credentials,) = configuration.credentials_for("10.0.1.2")

        assert credentials.timeout == 2.5

    def test_undeclared_device(self, config_file: Path) -> None:
        assert Configuration.from_file(config_file).credentials_for("192.0.2.1") == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigFileNotFoundError):
            Configuration.from_file(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("devices: [\n")

        with pytest.raises(ConfigValidationError):
            Configuration.from_file(path)

    def test_unknown_credential_reference(self) -> None:
        config = CollectorConfig.model_validate(
            {"devices": [{"id": "x", "addresses": ["10.0.0.1"], "credentials": ["missing"]}]}
        )

        with pytest.raises(ConfigValidationError, match="unknown credential name"):
            Configuration(config)

    def test_invalid_credentials(self) -> None:
        config = CollectorConfig.model_validate({"credentials": {"bad": {"version": "2c", "port": 0}}})

        with pytest.raises(ConfigValidationError, match="credentials.bad"):
            Configuration(config)

    def test_reload(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)
        config_file.write_text("devices:\n  - {id: one, addresses: [10.9.0.1]}\n")

        configuration.reload()

        assert configuration.devices() == ["10.9.0.1"]

    def test_credentials_lookup_uses_index(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)

        with patch.object(DeviceDeclaration, "expand", side_effect=AssertionError("expanded per lookup")):
            for address in configuration.devices():
                assert configuration.credentials_for(address)

    def test_reload_replaces_devices_and_credentials_together(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)
        config_file.write_text(
            "credentials:\n  lab: {community: lab}\n"
            "devices:\n  - {id: one, addresses: [10.9.0.1], credentials: [lab]}\n"
        )

        configuration.reload()

        (credentials,) = configuration.credentials_for("10.9.0.1")
        assert credentials.community.get_secret_value() == "lab"
        assert configuration.credentials_for("10.0.0.1") == []

    def test_failed_reload_keeps_previous_state(self, config_file: Path) -> None:
        configuration = Configuration.from_file(config_file)
        config_file.write_text("devices:\n  - {id: one, addresses: [10.9.0.1], credentials: [missing]}\n")

        with pytest.raises(ConfigValidationError):
            configuration.reload()

        assert configuration.devices() == ["10.0.0.1", "10.0.1.1", "10.0.1.2"]
        assert len(configuration.credentials_for("10.0.0.1")) == 2

    def test_reload_without_file_is_noop(self) -> None:
        configuration = Configuration(CollectorConfig())

        configuration.reload()

        assert configuration.devices() == []


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self) -> None:
        settings = CollectorSettings(_env_file=None)

        assert settings.config_file == Path("topopoll.yaml")
        assert settings.default_plugin == "default.yaml"
        assert settings.store_url == ""

    def test_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("TOPOPOLL_STORE_URL", "http://graph.example.net")
        monkeypatch.setenv("TOPOPOLL_DEBUG", "true")

        settings = CollectorSettings(_env_file=None)

        assert settings.store_url == "http://graph.example.net"
        assert settings.debug is True

    def test_invalid_log_level(self, monkeypatch) -> None:
        monkeypatch.setenv("TOPOPOLL_LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError):
            CollectorSettings(_env_file=None)

    def test_singleton(self) -> None:
        assert get_settings() is get_settings()

    def test_from_settings(self, config_file: Path) -> None:
        settings = CollectorSettings(_env_file=None, config_file=config_file, default_plugin="base.yaml")

        configuration = Configuration.from_settings(settings)

        assert configuration.default_document_name() == "base.yaml"
