"""
storagesign: SharedKey and Shared Access Signature signing for Azure Storage.
"""

__version__ = "0.1.0"

from .auth import (
    InvalidArgumentError,
    SASTokenAuth,
    SASTokenCredential,
    SharedKeyAuth,
    SharedKeyCredential,
    SigningConfigurationError,
    SigningError,
    URLParseError,
    UserDelegationKey,
)
from .sas import (
    AccountSASSignatureValues,
    BlobServiceSASSignatureValues,
    BlobURLParts,
    FileServiceSASSignatureValues,
    FileURLParts,
    IPRange,
    SASProtocol,
    URLParser,
)

__all__ = [
    "__version__",
    "SharedKeyCredential",
    "SASTokenCredential",
    "UserDelegationKey",
    "SharedKeyAuth",
    "SASTokenAuth",
    "SigningError",
    "InvalidArgumentError",
    "URLParseError",
    "SigningConfigurationError",
    "AccountSASSignatureValues",
    "BlobServiceSASSignatureValues",
    "FileServiceSASSignatureValues",
    "IPRange",
    "SASProtocol",
    "BlobURLParts",
    "FileURLParts",
    "URLParser",
]
