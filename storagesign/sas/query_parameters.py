"""
SAS query parameters.

Immutable results of signing a set of SAS signature values. Each object can
encode itself as a URL query string and be rebuilt from a parsed query string.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Dict, FrozenSet, List, Optional, Tuple
from urllib.parse import quote

from storagesign.auth.exceptions import InvalidArgumentError, URLParseError
from storagesign.sas import constants as c
from storagesign.sas.ip_range import IPRange
from storagesign.sas.protocol import SASProtocol
from storagesign.sas.timestamps import format_iso8601_utc, parse_iso8601_utc, to_utc


def url_encode(value: str) -> str:
    """Percent-encode a query component, including ``,``, ``/``, ``+`` and ``=``."""
    return quote(value, safe="")


def _time_or_none(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else format_iso8601_utc(value)


def _str_or_none(value) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class BaseSASQueryParameters:
    """Query parameters common to every kind of SAS."""

    _QUERY_KEYS: ClassVar[FrozenSet[str]] = frozenset({
        c.SAS_SERVICE_VERSION,
        c.SAS_PROTOCOL,
        c.SAS_START_TIME,
        c.SAS_EXPIRY_TIME,
        c.SAS_IP_RANGE,
        c.SAS_SIGNED_PERMISSIONS,
        c.SAS_SIGNATURE,
    })
    _TIME_FIELDS: ClassVar[Tuple[str, ...]] = ("start_time", "expiry_time")

    version: Optional[str] = None
    protocol: Optional[SASProtocol] = None
    start_time: Optional[datetime] = None
    expiry_time: Optional[datetime] = None
    ip_range: Optional[IPRange] = None
    permissions: Optional[str] = None
    signature: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        # Times are stored as they travel on the wire: aware UTC, whole seconds.
        for name in self._TIME_FIELDS:
            object.__setattr__(self, name, to_utc(getattr(self, name)))

    @classmethod
    def from_query_dict(
        cls,
        params: Dict[str, List[str]],
        remove_sas_parameters: bool = False,
    ):
        """
        Build query parameters from a parsed query string.

        Args:
            params: Lowercased parameter names mapped to their decoded values
            remove_sas_parameters: Delete the consumed SAS keys from ``params``

        Raises:
            URLParseError: If a SAS parameter has a malformed value
        """
        raw: Dict[str, str] = {}
        for key in cls._QUERY_KEYS:
            values = params.get(key)
            if values is None:
                continue
            raw[key] = ",".join(values)
            if remove_sas_parameters:
                del params[key]
        return cls(**cls._fields_from_query(raw))

    @classmethod
    def has_sas_parameters(cls, params: Dict[str, List[str]]) -> bool:
        return any(key in params for key in cls._QUERY_KEYS)

    @classmethod
    def _fields_from_query(cls, raw: Dict[str, str]) -> Dict[str, object]:
        protocol = raw.get(c.SAS_PROTOCOL)
        if protocol is not None:
            try:
                protocol = SASProtocol.parse(protocol)
            except InvalidArgumentError as exc:
                raise URLParseError(
                    f"Invalid value for SAS parameter '{c.SAS_PROTOCOL}': {protocol}"
                ) from exc

        ip_range = raw.get(c.SAS_IP_RANGE)

        return {
            "version": raw.get(c.SAS_SERVICE_VERSION),
            "protocol": protocol,
            "start_time": _parse_time(raw, c.SAS_START_TIME),
            "expiry_time": _parse_time(raw, c.SAS_EXPIRY_TIME),
            "ip_range": None if ip_range is None else IPRange.parse(ip_range),
            "permissions": raw.get(c.SAS_SIGNED_PERMISSIONS),
            "signature": raw.get(c.SAS_SIGNATURE),
        }

    def _query_values(self) -> Dict[str, Optional[str]]:
        return {
            c.SAS_SERVICE_VERSION: self.version,
            c.SAS_PROTOCOL: _str_or_none(self.protocol),
            c.SAS_START_TIME: _time_or_none(self.start_time),
            c.SAS_EXPIRY_TIME: _time_or_none(self.expiry_time),
            c.SAS_IP_RANGE: _str_or_none(self.ip_range),
            c.SAS_SIGNED_PERMISSIONS: self.permissions,
            c.SAS_SIGNATURE: self.signature,
        }

    def encode(self) -> str:
        """
        Encode as a query string without a leading ``?``.

        Values are percent-encoded and absent values are skipped.
        """
        values = self._query_values()
        return "&".join(
            f"{key}={url_encode(value)}"
            for key in c.SAS_QUERY_PARAMETER_ORDER
            if (value := values.get(key)) is not None
        )

    def __str__(self) -> str:
        return self.encode()


@dataclass(frozen=True)
class AccountSASQueryParameters(BaseSASQueryParameters):
    """Query parameters of an account SAS."""

    _QUERY_KEYS: ClassVar[FrozenSet[str]] = BaseSASQueryParameters._QUERY_KEYS | {
        c.SAS_SERVICES,
        c.SAS_RESOURCES_TYPES,
    }

    services: Optional[str] = None
    resource_types: Optional[str] = None

    @classmethod
    def _fields_from_query(cls, raw: Dict[str, str]) -> Dict[str, object]:
        fields = super()._fields_from_query(raw)
        fields["services"] = raw.get(c.SAS_SERVICES)
        fields["resource_types"] = raw.get(c.SAS_RESOURCES_TYPES)
        return fields

    def _query_values(self) -> Dict[str, Optional[str]]:
        values = super()._query_values()
        values[c.SAS_SERVICES] = self.services
        values[c.SAS_RESOURCES_TYPES] = self.resource_types
        return values


@dataclass(frozen=True)
class ServiceSASQueryParameters(BaseSASQueryParameters):
    """Query parameters of a service SAS."""

    _QUERY_KEYS: ClassVar[FrozenSet[str]] = BaseSASQueryParameters._QUERY_KEYS | {
        c.SAS_SIGNED_IDENTIFIER,
        c.SAS_SIGNED_RESOURCE,
        c.SAS_CACHE_CONTROL,
        c.SAS_CONTENT_DISPOSITION,
        c.SAS_CONTENT_ENCODING,
        c.SAS_CONTENT_LANGUAGE,
        c.SAS_CONTENT_TYPE,
    }

    identifier: Optional[str] = None
    resource: Optional[str] = None
    cache_control: Optional[str] = None
    content_disposition: Optional[str] = None
    content_encoding: Optional[str] = None
    content_language: Optional[str] = None
    content_type: Optional[str] = None

    @classmethod
    def _fields_from_query(cls, raw: Dict[str, str]) -> Dict[str, object]:
        fields = super()._fields_from_query(raw)
        fields.update(
            identifier=raw.get(c.SAS_SIGNED_IDENTIFIER),
            resource=raw.get(c.SAS_SIGNED_RESOURCE),
            cache_control=raw.get(c.SAS_CACHE_CONTROL),
            content_disposition=raw.get(c.SAS_CONTENT_DISPOSITION),
            content_encoding=raw.get(c.SAS_CONTENT_ENCODING),
            content_language=raw.get(c.SAS_CONTENT_LANGUAGE),
            content_type=raw.get(c.SAS_CONTENT_TYPE),
        )
        return fields

    def _query_values(self) -> Dict[str, Optional[str]]:
        values = super()._query_values()
        values.update({
            c.SAS_SIGNED_IDENTIFIER: self.identifier,
            c.SAS_SIGNED_RESOURCE: self.resource,
            c.SAS_CACHE_CONTROL: self.cache_control,
            c.SAS_CONTENT_DISPOSITION: self.content_disposition,
            c.SAS_CONTENT_ENCODING: self.content_encoding,
            c.SAS_CONTENT_LANGUAGE: self.content_language,
            c.SAS_CONTENT_TYPE: self.content_type,
        })
        return values


@dataclass(frozen=True)
class BlobServiceSASQueryParameters(ServiceSASQueryParameters):
    """Query parameters of a blob or container SAS, including user delegation fields."""

    _QUERY_KEYS: ClassVar[FrozenSet[str]] = ServiceSASQueryParameters._QUERY_KEYS | {
        c.SAS_SIGNED_OBJECT_ID,
        c.SAS_SIGNED_TENANT_ID,
        c.SAS_SIGNED_KEY_START,
        c.SAS_SIGNED_KEY_EXPIRY,
        c.SAS_SIGNED_KEY_SERVICE,
        c.SAS_SIGNED_KEY_VERSION,
    }
    _TIME_FIELDS: ClassVar[Tuple[str, ...]] = (
        BaseSASQueryParameters._TIME_FIELDS + ("key_start", "key_expiry")
    )

    key_oid: Optional[str] = None
    key_tid: Optional[str] = None
    key_start: Optional[datetime] = None
    key_expiry: Optional[datetime] = None
    key_service: Optional[str] = None
    key_version: Optional[str] = None

    @classmethod
    def _fields_from_query(cls, raw: Dict[str, str]) -> Dict[str, object]:
        fields = super()._fields_from_query(raw)
        fields.update(
            key_oid=raw.get(c.SAS_SIGNED_OBJECT_ID),
            key_tid=raw.get(c.SAS_SIGNED_TENANT_ID),
            key_start=_parse_time(raw, c.SAS_SIGNED_KEY_START),
            key_expiry=_parse_time(raw, c.SAS_SIGNED_KEY_EXPIRY),
            key_service=raw.get(c.SAS_SIGNED_KEY_SERVICE),
            key_version=raw.get(c.SAS_SIGNED_KEY_VERSION),
        )
        return fields

    def _query_values(self) -> Dict[str, Optional[str]]:
        values = super()._query_values()
        values.update({
            c.SAS_SIGNED_OBJECT_ID: self.key_oid,
            c.SAS_SIGNED_TENANT_ID: self.key_tid,
            c.SAS_SIGNED_KEY_START: _time_or_none(self.key_start),
            c.SAS_SIGNED_KEY_EXPIRY: _time_or_none(self.key_expiry),
            c.SAS_SIGNED_KEY_SERVICE: self.key_service,
            c.SAS_SIGNED_KEY_VERSION: self.key_version,
        })
        return values


@dataclass(frozen=True)
class FileServiceSASQueryParameters(ServiceSASQueryParameters):
    """Query parameters of a file or share SAS."""


def _parse_time(raw: Dict[str, str], key: str) -> Optional[datetime]:
    value = raw.get(key)
    if value is None:
        return None
    return parse_iso8601_utc(value, key)
