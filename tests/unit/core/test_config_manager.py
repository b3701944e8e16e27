"""
Tests for ConfigManager.
"""

import base64
import json
import os
import tempfile
from datetime import datetime, timezone

import pytest
import yaml
from pydantic import ValidationError

from storagesign.auth.exceptions import InvalidArgumentError
from storagesign.core.config_manager import (
    ConfigManager,
    LogLevel,
    SASDefaultsConfig,
    StorageSignConfig,
)
from storagesign.sas.permissions import ContainerSASPermission
from storagesign.sas.protocol import SASProtocol
from storagesign.sas.service_values import generate_container_sas

ACCOUNT_KEY = base64.b64encode(b"test-account-key-12345678901234567890").decode()


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        """Test loading default configuration."""
        manager = ConfigManager()
        config = manager.load()

        assert config is not None
        assert config.account.account_name is None
        assert config.sas.version == "2019-02-02"
        assert config.sas.protocol is None
        assert config.logging.level == LogLevel.INFO
        assert config.logging.format == "text"

    def test_load_from_yaml_file(self):
        """Test loading configuration from YAML file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml_config = {
                "account": {
                    "account_name": "yamlaccount",
                    "account_key": ACCOUNT_KEY
                },
                "sas": {
                    "version": "2018-11-09",
                    "protocol": "https"
                },
                "logging": {
                    "level": "DEBUG"
                }
            }
            yaml.dump(yaml_config, f)
            config_file = f.name

        try:
            manager = ConfigManager()
            config = manager.load(config_file=config_file)

            assert config.account.account_name == "yamlaccount"
            assert config.account.account_key.get_secret_value() == ACCOUNT_KEY
            assert config.sas.version == "2018-11-09"
            assert config.sas.protocol == SASProtocol.HTTPS_ONLY
            assert config.logging.level == LogLevel.DEBUG
        finally:
            os.unlink(config_file)

    def test_load_from_json_file(self):
        """Test loading configuration from JSON file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json_config = {
                "account": {"account_name": "jsonaccount"},
                "logging": {"format": "json", "rotation_count": 2}
            }
            json.dump(json_config, f)
            config_file = f.name

        try:
            manager = ConfigManager()
            config = manager.load(config_file=config_file)

            assert config.account.account_name == "jsonaccount"
            assert config.logging.format == "json"
            assert config.logging.rotation_count == 2
        finally:
            os.unlink(config_file)

    def test_load_from_env_variables(self):
        """Test loading configuration from environment variables."""
        os.environ["STORAGESIGN_ACCOUNT_NAME"] = "envaccount"
        os.environ["STORAGESIGN_ACCOUNT_KEY"] = ACCOUNT_KEY
        os.environ["STORAGESIGN_SAS_VERSION"] = "2018-03-28"
        os.environ["STORAGESIGN_LOG_LEVEL"] = "warning"
        os.environ["STORAGESIGN_LOG_FILE"] = "/tmp/storagesign.log"

        try:
            manager = ConfigManager()
            config = manager.load()

            assert config.account.account_name == "envaccount"
            assert config.account.account_key.get_secret_value() == ACCOUNT_KEY
            assert config.sas.version == "2018-03-28"
            assert config.logging.level == LogLevel.WARNING
            assert config.logging.file == "/tmp/storagesign.log"
        finally:
            del os.environ["STORAGESIGN_ACCOUNT_NAME"]
            del os.environ["STORAGESIGN_ACCOUNT_KEY"]
            del os.environ["STORAGESIGN_SAS_VERSION"]
            del os.environ["STORAGESIGN_LOG_LEVEL"]
            del os.environ["STORAGESIGN_LOG_FILE"]

    def test_overrides(self):
        """Test explicit overrides."""
        manager = ConfigManager()
        config = manager.load(overrides={
            "sas": {"protocol": "https,http"},
            "logging": {"level": "ERROR"}
        })

        assert config.sas.protocol == SASProtocol.HTTPS_HTTP
        assert config.logging.level == LogLevel.ERROR

    def test_configuration_precedence(self):
        """Test configuration precedence: overrides > ENV > FILE > DEFAULTS."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml_config = {
                "account": {"account_name": "file-account"},
                "sas": {"version": "2017-07-29"},
                "logging": {"level": "DEBUG"}
            }
            yaml.dump(yaml_config, f)
            config_file = f.name

        os.environ["STORAGESIGN_ACCOUNT_NAME"] = "env-account"
        os.environ["STORAGESIGN_SAS_VERSION"] = "2018-03-28"

        try:
            manager = ConfigManager()
            config = manager.load(
                config_file=config_file,
                overrides={"sas": {"version": "2018-11-09"}}
            )

            # Override wins over env and file
            assert config.sas.version == "2018-11-09"
            # Env wins over file
            assert config.account.account_name == "env-account"
            # File wins over defaults
            assert config.logging.level == LogLevel.DEBUG
        finally:
            os.unlink(config_file)
            del os.environ["STORAGESIGN_ACCOUNT_NAME"]
            del os.environ["STORAGESIGN_SAS_VERSION"]

    @pytest.mark.parametrize("version", ["2019", "2019-02", "v2019-02-02", "2019-02-xx"])
    def test_invalid_version_format(self, version):
        """Test that invalid service versions raise validation error."""
        manager = ConfigManager()

        with pytest.raises(ValidationError) as exc_info:
            manager.load(overrides={"sas": {"version": version}})

        assert "Version must be in format YYYY-MM-DD" in str(exc_info.value)

    def test_invalid_protocol(self):
        """Test that unknown SAS protocols are rejected."""
        manager = ConfigManager()

        with pytest.raises(ValidationError):
            manager.load(overrides={"sas": {"protocol": "http"}})

    def test_file_not_found(self):
        """Test that missing config file raises FileNotFoundError."""
        manager = ConfigManager()

        with pytest.raises(FileNotFoundError):
            manager.load(config_file="/nonexistent/config.yaml")

    def test_unsupported_file_format(self):
        """Test that unsupported file format raises ValueError."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
            f.write("invalid config")
            config_file = f.name

        try:
            manager = ConfigManager()
            with pytest.raises(ValueError) as exc_info:
                manager.load(config_file=config_file)

            assert "Unsupported config file format" in str(exc_info.value)
        finally:
            os.unlink(config_file)

    def test_get_config_before_load(self):
        """Test that getting config before loading raises RuntimeError."""
        manager = ConfigManager()

        with pytest.raises(RuntimeError) as exc_info:
            manager.get_config()

        assert "Configuration not loaded" in str(exc_info.value)

    def test_get_config_after_load(self):
        """Test getting config after loading."""
        manager = ConfigManager()
        config1 = manager.load()
        config2 = manager.get_config()

        assert config1 is config2

    def test_reload_configuration(self):
        """Test reloading configuration."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml.dump({"account": {"account_name": "first"}}, f)
            config_file = f.name

        try:
            manager = ConfigManager()
            config1 = manager.load(config_file=config_file)
            assert config1.account.account_name == "first"

            with open(config_file, 'w') as f:
                yaml.dump({"account": {"account_name": "second"}}, f)

            config2 = manager.reload()
            assert config2.account.account_name == "second"
        finally:
            os.unlink(config_file)

    def test_secrets_not_logged(self, caplog):
        """Test that the active configuration is logged with secrets masked."""
        manager = ConfigManager()

        with caplog.at_level("DEBUG", logger="storagesign.core.config_manager"):
            manager.load(overrides={
                "account": {"account_name": "acct", "account_key": ACCOUNT_KEY}
            })

        assert "acct" in caplog.text
        assert ACCOUNT_KEY not in caplog.text


class TestCredential:
    """Test building credentials from configuration."""

    def test_from_name_and_key(self):
        """Test credential from account name and key."""
        manager = ConfigManager()
        manager.load(overrides={
            "account": {"account_name": "acct", "account_key": ACCOUNT_KEY}
        })

        credential = manager.credential()

        assert credential.account_name == "acct"

    def test_connection_string_preferred(self):
        """Test that a connection string wins over name and key."""
        manager = ConfigManager()
        manager.load(overrides={
            "account": {
                "account_name": "acct",
                "account_key": ACCOUNT_KEY,
                "connection_string": f"AccountName=fromcs;AccountKey={ACCOUNT_KEY}"
            }
        })

        assert manager.credential().account_name == "fromcs"

    def test_missing_credentials(self):
        """Test that missing credentials raise InvalidArgumentError."""
        manager = ConfigManager()
        manager.load(overrides={"account": {"account_name": "acct"}})

        with pytest.raises(InvalidArgumentError):
            manager.credential()

    def test_credential_before_load(self):
        """Test that building a credential before loading raises RuntimeError."""
        with pytest.raises(RuntimeError):
            ConfigManager().credential()

    def test_invalid_account_key(self):
        """Test that a non-Base64 account key is rejected at load time."""
        with pytest.raises(ValidationError) as exc_info:
            ConfigManager().load(overrides={
                "account": {"account_name": "acct", "account_key": "not base64!!"}
            })

        assert "Account key must be a Base64 string" in str(exc_info.value)


class TestSASOptions:
    """Test SAS options derived from configuration."""

    def test_defaults(self):
        manager = ConfigManager()
        manager.load()

        assert manager.sas_options() == {"version": "2019-02-02"}

    def test_with_protocol(self):
        manager = ConfigManager()
        manager.load(overrides={"sas": {"version": "2018-11-09", "protocol": "https"}})

        assert manager.sas_options() == {
            "version": "2018-11-09",
            "protocol": SASProtocol.HTTPS_ONLY,
        }

    def test_options_reach_generated_token(self):
        """Test that configured defaults flow into a generated SAS."""
        manager = ConfigManager()
        manager.load(overrides={
            "account": {"account_name": "acct", "account_key": ACCOUNT_KEY},
            "sas": {"version": "2018-11-09", "protocol": "https"}
        })

        token = generate_container_sas(
            manager.credential(),
            "container",
            permission=ContainerSASPermission(read=True),
            expiry_time=datetime(2017, 1, 1, tzinfo=timezone.utc),
            **manager.sas_options()
        )

        assert token.startswith("sv=2018-11-09&sr=c&")
        assert "&spr=https&" in token


class TestStorageSignConfig:
    """Test suite for StorageSignConfig model."""

    def test_default_config(self):
        """Test default configuration values."""
        config = StorageSignConfig()

        assert config.account.connection_string is None
        assert config.sas.version == "2019-02-02"
        assert config.logging.rotation_size == "10MB"
        assert config.logging.rotation_count == 5
        assert config.logging.module_levels is None

    def test_secret_masked_in_dump(self):
        """Test that account keys are masked when the model is dumped."""
        config = StorageSignConfig(account={"account_name": "acct", "account_key": ACCOUNT_KEY})

        dumped = config.model_dump(mode="json")

        assert dumped["account"]["account_key"] == "**********"

    def test_sas_defaults_version(self):
        """Test a valid service version."""
        assert SASDefaultsConfig(version="2018-11-09").version == "2018-11-09"

    def test_unknown_section_rejected(self):
        """Test that misspelled top-level sections are reported."""
        with pytest.raises(ValidationError):
            StorageSignConfig(acount={"account_name": "acct"})

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            StorageSignConfig(logging={"format": "xml"})

    def test_log_level_case_insensitive(self):
        assert StorageSignConfig(logging={"level": "debug"}).logging.level == LogLevel.DEBUG
