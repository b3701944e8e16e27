"""
Service SAS signature values for blobs, containers, files and shares.

A signature values object is an immutable description of what a SAS grants.
``generate_sas_query_parameters`` validates it, builds the string-to-sign in
the order the service expects and signs it.

Blob string-to-sign (account key):
    permissions, start, expiry, canonicalName, identifier, ipRange, protocol,
    version, resource, snapshotId, cacheControl, contentDisposition,
    contentEncoding, contentLanguage, contentType

Blob string-to-sign (user delegation key):
    permissions, start, expiry, canonicalName, skoid, sktid, skt, ske, sks,
    skv, ipRange, protocol, version, resource, snapshotId, cacheControl,
    contentDisposition, contentEncoding, contentLanguage, contentType

File string-to-sign:
    permissions, start, expiry, canonicalName, identifier, ipRange, protocol,
    version, cacheControl, contentDisposition, contentEncoding,
    contentLanguage, contentType

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/create-service-sas
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Union
from urllib.parse import urlparse

from storagesign.auth.delegation import UserDelegationKey
from storagesign.auth.exceptions import InvalidArgumentError, assert_not_none
from storagesign.auth.sharedkey import SharedKeyCredential, compute_hmac256
from storagesign.sas import constants as c
from storagesign.sas.ip_range import IPRange
from storagesign.sas.permissions import (
    BlobSASPermission,
    ContainerSASPermission,
    FileSASPermission,
    ShareSASPermission,
    _SASFlags,
)
from storagesign.sas.protocol import SASProtocol
from storagesign.sas.query_parameters import (
    BlobServiceSASQueryParameters,
    FileServiceSASQueryParameters,
)
from storagesign.sas.timestamps import format_iso8601_utc, to_utc

logger = logging.getLogger(__name__)


def build_canonical_name(
    service: str,
    account_name: str,
    container_or_share: str,
    path: Optional[str] = None,
) -> str:
    """
    Build the signed resource identity.

    Returns ``/{service}/{account}/{container_or_share}`` with ``/{path}``
    appended when a blob name or file path is given.
    """
    canonical_name = f"/{service}/{account_name}/{container_or_share}"
    if path is not None:
        canonical_name += f"/{path}"
    return canonical_name


def canonical_name_from_url(url: str, account_name: str) -> str:
    """Build a blob canonical name ``/blob/{account}{path}`` from a resource URL."""
    return f"/{c.BLOB_SERVICE}/{account_name}{urlparse(url).path}"


def _value(value) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class _ServiceSASSignatureValues:
    version: Optional[str] = c.TARGET_STORAGE_VERSION
    protocol: Optional[SASProtocol] = None
    start_time: Optional[datetime] = None
    expiry_time: Optional[datetime] = None
    permissions: Optional[Union[str, _SASFlags]] = None
    ip_range: Optional[IPRange] = None
    canonical_name: Optional[str] = None
    resource: Optional[str] = None
    identifier: Optional[str] = None
    cache_control: Optional[str] = None
    content_disposition: Optional[str] = None
    content_encoding: Optional[str] = None
    content_language: Optional[str] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "start_time", to_utc(self.start_time))
        object.__setattr__(self, "expiry_time", to_utc(self.expiry_time))
        # Permission objects are stored in their encoded form.
        if isinstance(self.permissions, _SASFlags):
            object.__setattr__(self, "permissions", str(self.permissions))

    def _assert_generate_ok(self) -> None:
        assert_not_none("version", self.version)
        assert_not_none("canonical_name", self.canonical_name)
        assert_not_none("resource", self.resource)

        # Without a stored access policy the SAS itself must carry both.
        if self.identifier is None:
            assert_not_none("expiry_time", self.expiry_time)
            assert_not_none("permissions", self.permissions)

    def _leading_fields(self) -> List[str]:
        return [
            _value(self.permissions),
            format_iso8601_utc(self.start_time),
            format_iso8601_utc(self.expiry_time),
            _value(self.canonical_name),
        ]

    def _response_header_fields(self) -> List[str]:
        return [
            _value(self.cache_control),
            _value(self.content_disposition),
            _value(self.content_encoding),
            _value(self.content_language),
            _value(self.content_type),
        ]

    def _query_parameter_fields(self, signature: str) -> dict:
        return dict(
            version=self.version,
            protocol=self.protocol,
            start_time=self.start_time,
            expiry_time=self.expiry_time,
            ip_range=self.ip_range,
            permissions=self.permissions,
            signature=signature,
            resource=self.resource,
            cache_control=self.cache_control,
            content_disposition=self.content_disposition,
            content_encoding=self.content_encoding,
            content_language=self.content_language,
            content_type=self.content_type,
        )


@dataclass(frozen=True)
class BlobServiceSASSignatureValues(_ServiceSASSignatureValues):
    """Signature values for a blob, blob snapshot or container SAS."""

    snapshot_id: Optional[str] = None

    def with_canonical_name(
        self,
        account_name: str,
        container_name: str,
        blob_name: Optional[str] = None,
    ) -> "BlobServiceSASSignatureValues":
        """Return a copy whose canonical name is ``/blob/{account}/{container}[/{blob}]``."""
        return replace(
            self,
            canonical_name=build_canonical_name(
                c.BLOB_SERVICE, account_name, container_name, blob_name
            ),
        )

    def _assert_generate_ok(self) -> None:
        super()._assert_generate_ok()
        if self.snapshot_id is not None and self.resource != c.SAS_BLOB_SNAPSHOT_CONSTANT:
            raise InvalidArgumentError(
                f"The argument 'resource' must be '{c.SAS_BLOB_SNAPSHOT_CONSTANT}' "
                "when 'snapshot_id' is set."
            )

    def string_to_sign(self) -> str:
        """Build the string-to-sign for signing with an account key."""
        return "\n".join(
            self._leading_fields()
            + [
                _value(self.identifier),
                _value(self.ip_range),
                _value(self.protocol),
                _value(self.version),
                _value(self.resource),
                _value(self.snapshot_id),
            ]
            + self._response_header_fields()
        )

    def user_delegation_string_to_sign(self, delegation_key: UserDelegationKey) -> str:
        """Build the string-to-sign for signing with a user delegation key."""
        return "\n".join(
            self._leading_fields()
            + [
                _value(delegation_key.signed_oid),
                _value(delegation_key.signed_tid),
                format_iso8601_utc(delegation_key.signed_start),
                format_iso8601_utc(delegation_key.signed_expiry),
                _value(delegation_key.signed_service),
                _value(delegation_key.signed_version),
                _value(self.ip_range),
                _value(self.protocol),
                _value(self.version),
                _value(self.resource),
                _value(self.snapshot_id),
            ]
            + self._response_header_fields()
        )

    def generate_sas_query_parameters(
        self, credential: SharedKeyCredential
    ) -> BlobServiceSASQueryParameters:
        """
        Sign these values with an account's shared key.

        Raises:
            InvalidArgumentError: If a required value is missing
            SigningConfigurationError: If the account key is not valid Base64
        """
        assert_not_none("credential", credential)
        self._assert_generate_ok()

        # Signature is computed over the un-encoded values.
        signature = credential.compute_hmac256(self.string_to_sign())
        logger.debug(f"Generated blob service SAS for {self.canonical_name} (sr={self.resource})")

        return BlobServiceSASQueryParameters(
            identifier=self.identifier,
            **self._query_parameter_fields(signature),
        )

    def generate_user_delegation_sas_query_parameters(
        self, delegation_key: UserDelegationKey
    ) -> BlobServiceSASQueryParameters:
        """
        Sign these values with a user delegation key.

        Expiry time and permissions are always required; the identifier is
        neither signed nor emitted.
        """
        assert_not_none("delegation_key", delegation_key)
        self._assert_generate_ok()
        assert_not_none("expiry_time", self.expiry_time)
        assert_not_none("permissions", self.permissions)
        assert_not_none("delegation_key.value", delegation_key.value)

        signature = compute_hmac256(
            delegation_key.value, self.user_delegation_string_to_sign(delegation_key)
        )
        logger.debug(f"Generated user delegation SAS for {self.canonical_name} (sr={self.resource})")

        return BlobServiceSASQueryParameters(
            key_oid=delegation_key.signed_oid,
            key_tid=delegation_key.signed_tid,
            key_start=delegation_key.signed_start,
            key_expiry=delegation_key.signed_expiry,
            key_service=delegation_key.signed_service,
            key_version=delegation_key.signed_version,
            **self._query_parameter_fields(signature),
        )


@dataclass(frozen=True)
class FileServiceSASSignatureValues(_ServiceSASSignatureValues):
    """Signature values for a file or share SAS."""

    def with_canonical_name(
        self,
        account_name: str,
        share_name: str,
        file_path: Optional[str] = None,
    ) -> "FileServiceSASSignatureValues":
        """Return a copy whose canonical name is ``/file/{account}/{share}[/{path}]``."""
        return replace(
            self,
            canonical_name=build_canonical_name(
                c.FILE_SERVICE, account_name, share_name, file_path
            ),
        )

    def string_to_sign(self) -> str:
        return "\n".join(
            self._leading_fields()
            + [
                _value(self.identifier),
                _value(self.ip_range),
                _value(self.protocol),
                _value(self.version),
            ]
            + self._response_header_fields()
        )

    def generate_sas_query_parameters(
        self, credential: SharedKeyCredential
    ) -> FileServiceSASQueryParameters:
        """
        Sign these values with an account's shared key.

        Raises:
            InvalidArgumentError: If a required value is missing
            SigningConfigurationError: If the account key is not valid Base64
        """
        assert_not_none("credential", credential)
        self._assert_generate_ok()

        signature = credential.compute_hmac256(self.string_to_sign())
        logger.debug(f"Generated file service SAS for {self.canonical_name} (sr={self.resource})")

        return FileServiceSASQueryParameters(
            identifier=self.identifier,
            **self._query_parameter_fields(signature),
        )


def _options(options: dict) -> dict:
    # None means "not set", so unset options fall back to the defaults.
    return {key: value for key, value in options.items() if value is not None}


def generate_blob_sas(
    credential: SharedKeyCredential,
    container_name: str,
    blob_name: str,
    permission: Optional[BlobSASPermission] = None,
    expiry_time: Optional[datetime] = None,
    *,
    snapshot: Optional[str] = None,
    **options,
) -> str:
    """
    Generate an encoded service SAS for a blob or blob snapshot.

    Extra keyword options (identifier, start_time, version, protocol,
    ip_range, cache_control, ...) are passed to the signature values.
    """
    assert_not_none("credential", credential)
    values = BlobServiceSASSignatureValues(
        permissions=permission,
        expiry_time=expiry_time,
        snapshot_id=snapshot,
        resource=c.SAS_BLOB_SNAPSHOT_CONSTANT if snapshot is not None else c.SAS_BLOB_CONSTANT,
        **_options(options),
    ).with_canonical_name(credential.account_name, container_name, blob_name)
    return values.generate_sas_query_parameters(credential).encode()


def generate_blob_user_delegation_sas(
    delegation_key: UserDelegationKey,
    account_name: str,
    container_name: str,
    blob_name: Optional[str],
    permission: Union[BlobSASPermission, ContainerSASPermission],
    expiry_time: datetime,
    *,
    snapshot: Optional[str] = None,
    **options,
) -> str:
    """Generate an encoded user delegation SAS for a blob, or for a container when ``blob_name`` is None."""
    if blob_name is None:
        resource = c.SAS_CONTAINER_CONSTANT
    elif snapshot is not None:
        resource = c.SAS_BLOB_SNAPSHOT_CONSTANT
    else:
        resource = c.SAS_BLOB_CONSTANT

    values = BlobServiceSASSignatureValues(
        permissions=permission,
        expiry_time=expiry_time,
        snapshot_id=snapshot,
        resource=resource,
        **_options(options),
    ).with_canonical_name(account_name, container_name, blob_name)
    return values.generate_user_delegation_sas_query_parameters(delegation_key).encode()


def generate_container_sas(
    credential: SharedKeyCredential,
    container_name: str,
    permission: Optional[ContainerSASPermission] = None,
    expiry_time: Optional[datetime] = None,
    **options,
) -> str:
    """Generate an encoded service SAS for a container."""
    assert_not_none("credential", credential)
    values = BlobServiceSASSignatureValues(
        permissions=permission,
        expiry_time=expiry_time,
        resource=c.SAS_CONTAINER_CONSTANT,
        **_options(options),
    ).with_canonical_name(credential.account_name, container_name)
    return values.generate_sas_query_parameters(credential).encode()


def generate_file_sas(
    credential: SharedKeyCredential,
    share_name: str,
    file_path: str,
    permission: Optional[FileSASPermission] = None,
    expiry_time: Optional[datetime] = None,
    **options,
) -> str:
    """Generate an encoded service SAS for a file."""
    assert_not_none("credential", credential)
    values = FileServiceSASSignatureValues(
        permissions=permission,
        expiry_time=expiry_time,
        resource=c.SAS_FILE_CONSTANT,
        **_options(options),
    ).with_canonical_name(credential.account_name, share_name, file_path)
    return values.generate_sas_query_parameters(credential).encode()


def generate_share_sas(
    credential: SharedKeyCredential,
    share_name: str,
    permission: Optional[ShareSASPermission] = None,
    expiry_time: Optional[datetime] = None,
    **options,
) -> str:
    """Generate an encoded service SAS for a share."""
    assert_not_none("credential", credential)
    values = FileServiceSASSignatureValues(
        permissions=permission,
        expiry_time=expiry_time,
        resource=c.SAS_SHARE_CONSTANT,
        **_options(options),
    ).with_canonical_name(credential.account_name, share_name)
    return values.generate_sas_query_parameters(credential).encode()
