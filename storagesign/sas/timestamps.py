"""ISO-8601 UTC timestamps as they appear in SAS tokens."""

import re
from datetime import datetime, timezone
from typing import Optional

from storagesign.auth.exceptions import URLParseError

ISO_8601_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# The service may send up to seven fractional digits.
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to an aware UTC value with second precision.

    Naive datetimes are taken to be UTC. Returns None for None.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=0)


def format_iso8601_utc(value: Optional[datetime]) -> str:
    """
    Format a datetime as ``YYYY-MM-DDTHH:MM:SSZ``.

    Naive datetimes are taken to be UTC. Returns "" for None.
    """
    if value is None:
        return ""
    return to_utc(value).strftime(ISO_8601_UTC_FORMAT)


def parse_iso8601_utc(value: str, parameter: str) -> datetime:
    """
    Parse a SAS timestamp into an aware UTC datetime.

    Accepts second precision, fractional seconds (any number of digits) and
    date-only values.

    Raises:
        URLParseError: If the value is not a valid timestamp
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before Python 3.11 only takes 3 or 6 fractional digits.
    text = _FRACTION_PATTERN.sub(
        lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1
    )
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise URLParseError(
            f"Invalid timestamp for SAS parameter '{parameter}': {value}"
        ) from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
