"""Configuration and logging for storagesign."""

from .config_manager import ConfigManager, StorageSignConfig
from .logging_config import setup_logging, setup_logging_from_config

__all__ = [
    "ConfigManager",
    "StorageSignConfig",
    "setup_logging",
    "setup_logging_from_config",
]
