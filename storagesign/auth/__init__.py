"""
storagesign authentication module.

Credentials and request signing for Azure Storage: SharedKey, user delegation
keys and pre-built SAS tokens.
"""

from storagesign.auth.delegation import UserDelegationKey
from storagesign.auth.exceptions import (
    InvalidArgumentError,
    SigningConfigurationError,
    SigningError,
    URLParseError,
)
from storagesign.auth.policies import SASTokenAuth, SharedKeyAuth
from storagesign.auth.sastoken import SASTokenCredential
from storagesign.auth.sharedkey import (
    SharedKeyCredential,
    build_string_to_sign,
    compute_hmac256,
    parse_authorization_header,
)

__all__ = [
    # Exceptions
    "SigningError",
    "InvalidArgumentError",
    "URLParseError",
    "SigningConfigurationError",
    # Credentials
    "SharedKeyCredential",
    "SASTokenCredential",
    "UserDelegationKey",
    # SharedKey
    "build_string_to_sign",
    "compute_hmac256",
    "parse_authorization_header",
    # httpx hooks
    "SharedKeyAuth",
    "SASTokenAuth",
]
