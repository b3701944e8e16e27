"""
Shared Access Signature generation and parsing.

Signature values describe what a SAS grants; signing them produces query
parameters that encode to a token string. URL parts split a resource URL into
its components, SAS included.
"""

from storagesign.sas.account_values import AccountSASSignatureValues, generate_account_sas
from storagesign.sas.constants import TARGET_STORAGE_VERSION
from storagesign.sas.ip_range import IPRange
from storagesign.sas.permissions import (
    AccountSASPermission,
    AccountSASResourceType,
    AccountSASService,
    BlobSASPermission,
    ContainerSASPermission,
    FileSASPermission,
    ShareSASPermission,
)
from storagesign.sas.protocol import SASProtocol
from storagesign.sas.query_parameters import (
    AccountSASQueryParameters,
    BaseSASQueryParameters,
    BlobServiceSASQueryParameters,
    FileServiceSASQueryParameters,
    ServiceSASQueryParameters,
)
from storagesign.sas.service_values import (
    BlobServiceSASSignatureValues,
    FileServiceSASSignatureValues,
    build_canonical_name,
    canonical_name_from_url,
    generate_blob_sas,
    generate_blob_user_delegation_sas,
    generate_container_sas,
    generate_file_sas,
    generate_share_sas,
)
from storagesign.sas.url_parts import BlobURLParts, FileURLParts, URLParser

__all__ = [
    "TARGET_STORAGE_VERSION",
    # Values
    "IPRange",
    "SASProtocol",
    # Permissions
    "AccountSASPermission",
    "AccountSASResourceType",
    "AccountSASService",
    "BlobSASPermission",
    "ContainerSASPermission",
    "FileSASPermission",
    "ShareSASPermission",
    # Signature values
    "AccountSASSignatureValues",
    "BlobServiceSASSignatureValues",
    "FileServiceSASSignatureValues",
    "build_canonical_name",
    "canonical_name_from_url",
    # Query parameters
    "BaseSASQueryParameters",
    "AccountSASQueryParameters",
    "ServiceSASQueryParameters",
    "BlobServiceSASQueryParameters",
    "FileServiceSASQueryParameters",
    # Token helpers
    "generate_account_sas",
    "generate_blob_sas",
    "generate_blob_user_delegation_sas",
    "generate_container_sas",
    "generate_file_sas",
    "generate_share_sas",
    # URLs
    "BlobURLParts",
    "FileURLParts",
    "URLParser",
]
