"""
Configuration management for storagesign.

Account credentials, SAS defaults and logging settings come from a YAML or
JSON file, ``STORAGESIGN_*`` environment variables and explicit overrides.
The signers never read configuration themselves; callers build credentials
and options here and pass them in.
"""

import base64
import binascii
import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from storagesign.auth.exceptions import InvalidArgumentError
from storagesign.auth.sharedkey import SharedKeyCredential
from storagesign.sas.constants import TARGET_STORAGE_VERSION
from storagesign.sas.protocol import SASProtocol

logger = logging.getLogger(__name__)

# Environment variable -> (section, field)
ENV_VARIABLES: Dict[str, Tuple[str, str]] = {
    "STORAGESIGN_ACCOUNT_NAME": ("account", "account_name"),
    "STORAGESIGN_ACCOUNT_KEY": ("account", "account_key"),
    "STORAGESIGN_CONNECTION_STRING": ("account", "connection_string"),
    "STORAGESIGN_SAS_VERSION": ("sas", "version"),
    "STORAGESIGN_LOG_LEVEL": ("logging", "level"),
    "STORAGESIGN_LOG_FILE": ("logging", "file"),
}

_FILE_LOADERS: Dict[str, Callable[[TextIO], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AccountConfig(BaseModel):
    """Storage account credentials."""
    account_name: Optional[str] = None
    account_key: Optional[SecretStr] = None
    connection_string: Optional[SecretStr] = None

    @field_validator("account_key")
    @classmethod
    def validate_account_key(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Account keys must be valid Base64."""
        if v is not None:
            try:
                base64.b64decode(v.get_secret_value(), validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("Account key must be a Base64 string")
        return v


class SASDefaultsConfig(BaseModel):
    """Defaults applied to generated SAS tokens."""
    version: str = TARGET_STORAGE_VERSION
    protocol: Optional[SASProtocol] = None

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Service versions are dates: YYYY-MM-DD."""
        parts = v.split("-")
        if [len(part) for part in parts] != [4, 2, 2] or not all(part.isdigit() for part in parts):
            raise ValueError("Version must be in format YYYY-MM-DD")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration, passed to ``setup_logging_from_config``."""
    level: LogLevel = LogLevel.INFO
    format: str = Field(default="text", pattern="^(text|json)$")
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = Field(default=5, ge=0)
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'storagesign.sas': 'DEBUG'}"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class StorageSignConfig(BaseModel):
    """Main storagesign configuration schema."""

    account: AccountConfig = Field(default_factory=AccountConfig)
    sas: SASDefaultsConfig = Field(default_factory=SASDefaultsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


class ConfigManager:
    """
    Loads and holds the storagesign configuration.

    Precedence, highest first: explicit overrides, ``STORAGESIGN_*``
    environment variables, the configuration file, model defaults.
    """

    def __init__(self):
        self._config: Optional[StorageSignConfig] = None
        self._config_file: Optional[Path] = None
        self._overrides: Optional[Dict[str, Any]] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> StorageSignConfig:
        """
        Load and validate configuration.

        Args:
            config_file: YAML (.yaml/.yml) or JSON (.json) file
            overrides: Nested dictionary applied last, e.g. {"sas": {"version": "2018-11-09"}}

        Returns:
            The validated configuration

        Raises:
            ValidationError: If a value is invalid
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If ``config_file`` has an unsupported extension
        """
        sources = []
        if config_file:
            sources.append(read_config_file(config_file))
            logger.info(f"Loaded configuration from {config_file}")

        env_config = read_env_config()
        if env_config:
            names = sorted(name for name in ENV_VARIABLES if os.getenv(name))
            logger.info(f"Applied environment variables: {', '.join(names)}")
        sources.append(env_config)
        sources.append(overrides or {})

        merged: Dict[str, Any] = {}
        for source in sources:
            merged = deep_merge(merged, source)

        try:
            config = StorageSignConfig.model_validate(merged)
        except ValidationError as e:
            logger.error(f"Invalid storagesign configuration: {e}")
            raise

        self._config = config
        self._config_file = Path(config_file) if config_file else None
        self._overrides = overrides
        # SecretStr fields dump as "**********".
        logger.debug(f"Active configuration: {json.dumps(config.model_dump(mode='json'), sort_keys=True)}")
        return config

    def get_config(self) -> StorageSignConfig:
        """
        Return the loaded configuration.

        Raises:
            RuntimeError: If load() has not been called
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> StorageSignConfig:
        """Re-read the same file, environment and overrides."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file, overrides=self._overrides)

    def credential(self) -> SharedKeyCredential:
        """
        Build a SharedKeyCredential from the account settings.

        A connection string takes precedence over a name/key pair.

        Raises:
            RuntimeError: If load() has not been called
            InvalidArgumentError: If no usable credentials are configured
        """
        account = self.get_config().account

        if account.connection_string is not None:
            return SharedKeyCredential.from_connection_string(
                account.connection_string.get_secret_value()
            )

        if not account.account_name or account.account_key is None:
            raise InvalidArgumentError(
                "Configuration must provide 'account_name' and 'account_key' "
                "or a 'connection_string'."
            )

        return SharedKeyCredential(account.account_name, account.account_key.get_secret_value())

    def sas_options(self) -> Dict[str, Any]:
        """
        Keyword options for the ``generate_*_sas`` helpers.

        Only configured values are returned, so helper defaults still apply.
        """
        sas = self.get_config().sas
        options: Dict[str, Any] = {"version": sas.version}
        if sas.protocol is not None:
            options["protocol"] = SASProtocol(sas.protocol)
        return options


def read_config_file(file_path: str) -> Dict[str, Any]:
    """Read a YAML or JSON configuration file into a dictionary."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    loader = _FILE_LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ValueError(f"Unsupported config file format: {path.suffix}")

    with open(path, "r", encoding="utf-8") as f:
        return loader(f) or {}


def read_env_config() -> Dict[str, Any]:
    """Collect ``STORAGESIGN_*`` environment variables into a nested dictionary."""
    config: Dict[str, Any] = {}
    for name, (section, field) in ENV_VARIABLES.items():
        if value := os.getenv(name):
            config.setdefault(section, {})[field] = value
    return config


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested dictionaries merge key by key."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result
