"""Protocols a SAS may be used over."""

from enum import Enum

from storagesign.auth.exceptions import InvalidArgumentError


class SASProtocol(str, Enum):
    """SAS protocol values (spr)."""

    HTTPS_ONLY = "https"
    HTTPS_HTTP = "https,http"

    @classmethod
    def parse(cls, value: str) -> "SASProtocol":
        for protocol in cls:
            if protocol.value == value:
                return protocol
        raise InvalidArgumentError(
            f"SASProtocol could not be parsed from '{value}'. "
            f"Expected one of: {', '.join(p.value for p in cls)}"
        )

    def __str__(self) -> str:
        return self.value
