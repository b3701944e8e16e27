"""
Logging infrastructure for storagesign.

Handlers are attached to the ``storagesign`` logger only. Every handler
carries a SecretRedactionFilter so account keys, signatures and SharedKey
authorization values never reach a log sink, even at DEBUG.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from storagesign.core.config_manager import LoggingConfig

PACKAGE_LOGGER = "storagesign"
REDACTED = "***REDACTED***"

# Context keys whose values are always secret.
SECRET_CONTEXT_KEYS = frozenset({"account_key", "signature", "sig", "sas_token", "authorization"})

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMG]?B)?$")
_SIZE_UNITS = {None: 1, "B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


class SecretRedactionFilter(logging.Filter):
    """Masks storage secrets in the message and in structured context."""

    PATTERNS = (
        # Authorization header values, whatever the scheme
        (re.compile(r"(Authorization:\s+)(?:SharedKey\s+|Bearer\s+)?\S+", re.IGNORECASE), REDACTED),
        # Bare "SharedKey account:signature", keeping the account
        (re.compile(r"(SharedKey\s+[^:\s]+:)\S+"), REDACTED),
        (re.compile(r"(x-ms-encryption-key:\s+)\S+", re.IGNORECASE), REDACTED),
        # Connection string secrets
        (re.compile(r"(AccountKey=)[^;\s]+", re.IGNORECASE), REDACTED),
        (re.compile(r"(SharedAccessSignature=)[^;\s]+", re.IGNORECASE), REDACTED),
        # SAS signature in a query string
        (re.compile(r"(sig=)[^;&\s]+", re.IGNORECASE), REDACTED),
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            # Interpolate first so secrets passed as arguments are caught too.
            record.msg = record.getMessage()
            record.args = None
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)

        context = getattr(record, "context", None)
        if isinstance(context, Mapping):
            record.context = {
                key: REDACTED if key.lower() in SECRET_CONTEXT_KEYS else value
                for key, value in context.items()
            }
        return True


def redact(text: str) -> str:
    """Apply every redaction pattern to ``text``."""
    for pattern, marker in SecretRedactionFilter.PATTERNS:
        text = pattern.sub(lambda match: match.group(1) + marker, text)
    return text


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain text lines, with structured context appended as key=value pairs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            # Keep any traceback below the context.
            first, sep, rest = line.partition("\n")
            line = f"{first} [{pairs}]{sep}{rest}"
        return line


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Configure the storagesign logger.

    Calling it again replaces the handlers it installed before. The root
    logger is never touched.

    Args:
        level: Level name for the package logger
        format_type: "json" or "text"
        log_file: Also write to this file, rotated by size
        rotation_size: Rotation threshold such as "10MB"
        rotation_count: Rotated files to keep
        module_levels: Level overrides, e.g. {"storagesign.sas": "DEBUG"}
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    package_logger = logging.getLogger(logger_name)
    package_logger.setLevel(_level_number(level))
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(SecretRedactionFilter())
        package_logger.addHandler(handler)

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(_level_number(module_level))

    package_logger.debug(f"Logging configured: level={level}, format={format_type}, file={log_file}")
    return package_logger


def setup_logging_from_config(config: "LoggingConfig") -> logging.Logger:
    """Configure logging from a loaded ``LoggingConfig``."""
    level = config.level.value if hasattr(config.level, "value") else config.level
    return setup_logging(
        level=level,
        format_type=config.format,
        log_file=config.file,
        rotation_size=config.rotation_size,
        rotation_count=config.rotation_count,
        module_levels=config.module_levels,
    )


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unknown log level: {level}")
    return number


def _parse_size(size_str: str) -> int:
    """
    Convert "512", "100B", "64KB", "1.5MB" or "2GB" to bytes.

    Raises:
        ValueError: If the string is not a size
    """
    match = _SIZE_PATTERN.match(size_str.strip().upper())
    if match is None:
        raise ValueError(f"Invalid size: {size_str!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit])


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log ``message`` with structured context, e.g. the signed resource."""
    logger.log(level, message, extra={"context": context} if context else None)
