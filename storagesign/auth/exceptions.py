"""
Signing exceptions for storagesign.

All errors are raised synchronously, before any cryptographic work where
possible, and are never retried.
"""


class SigningError(Exception):
    """Base exception for signing errors."""

    def __init__(self, message: str, error_code: str = "SigningFailed"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class InvalidArgumentError(SigningError, ValueError):
    """Raised when a required value is missing or a value is malformed."""

    def __init__(self, message: str = "Invalid argument", error_code: str = "InvalidArgument"):
        super().__init__(message, error_code)


class URLParseError(InvalidArgumentError):
    """Raised when a URL or one of its SAS components cannot be parsed."""

    def __init__(self, message: str = "URL could not be parsed"):
        super().__init__(message, "InvalidQueryParameterValue")


class SigningConfigurationError(SigningError, RuntimeError):
    """Raised when the key material or crypto environment is unusable."""

    def __init__(self, message: str = "Signing is not configured correctly"):
        super().__init__(message, "SigningConfigurationError")


def assert_not_none(name: str, value) -> None:
    """Raise InvalidArgumentError naming ``name`` if ``value`` is None."""
    if value is None:
        raise InvalidArgumentError(f"The argument '{name}' cannot be None.")
