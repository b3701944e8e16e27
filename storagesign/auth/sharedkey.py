"""
SharedKey request signing for Azure Storage.

Builds the SharedKey string-to-sign for an outgoing request and computes the
``Authorization`` header value:

    VERB\\n
    Content-Encoding\\n
    Content-Language\\n
    Content-Length\\n
    Content-MD5\\n
    Content-Type\\n
    Date\\n
    If-Modified-Since\\n
    If-Match\\n
    If-None-Match\\n
    If-Unmodified-Since\\n
    Range\\n
    CanonicalizedHeaders\\n
    CanonicalizedResource

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/authorize-with-shared-key
"""

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlparse

from storagesign.auth.exceptions import (
    InvalidArgumentError,
    SigningConfigurationError,
    assert_not_none,
)

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER_FORMAT = "SharedKey {account}:{signature}"

# Standard headers in the order they appear in the string-to-sign.
STANDARD_HEADERS = (
    "content-encoding",
    "content-language",
    "content-length",
    "content-md5",
    "content-type",
    "date",
    "if-modified-since",
    "if-match",
    "if-none-match",
    "if-unmodified-since",
    "range",
)


class SharedKeyCredential:
    """
    An account name and its Base64-encoded access key.

    Signs SharedKey requests and SAS tokens. The key is never logged or
    included in ``repr``.
    """

    _ACCOUNT_NAME = "accountname"
    _ACCOUNT_KEY = "accountkey"

    __slots__ = ("_account_name", "_account_key")

    def __init__(self, account_name: str, account_key: str):
        assert_not_none("account_name", account_name)
        assert_not_none("account_key", account_key)
        self._account_name = account_name
        self._account_key = account_key

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "SharedKeyCredential":
        """
        Create a credential from an Azure Storage connection string.

        Args:
            connection_string: e.g. "DefaultEndpointsProtocol=https;AccountName=a;AccountKey=k"

        Returns:
            SharedKeyCredential for the account in the connection string

        Raises:
            InvalidArgumentError: If AccountName or AccountKey is missing
        """
        pieces: Dict[str, str] = {}
        for piece in connection_string.split(";"):
            if not piece.strip():
                continue
            key, sep, value = piece.partition("=")
            if not sep:
                raise InvalidArgumentError(
                    f"Connection string segment is not a key=value pair: '{key.strip()}'"
                )
            pieces[key.strip().lower()] = value.strip()

        account_name = pieces.get(cls._ACCOUNT_NAME)
        account_key = pieces.get(cls._ACCOUNT_KEY)
        if not account_name or not account_key:
            raise InvalidArgumentError(
                "Connection string must contain 'AccountName' and 'AccountKey'."
            )

        return cls(account_name, account_key)

    @property
    def account_name(self) -> str:
        return self._account_name

    def __repr__(self) -> str:
        return f"SharedKeyCredential(account_name={self._account_name!r})"

    def compute_hmac256(self, string_to_sign: str) -> str:
        """Sign ``string_to_sign`` with the account key."""
        return compute_hmac256(self._account_key, string_to_sign)

    def build_string_to_sign(
        self,
        url: str,
        method: str,
        headers: Mapping[str, Optional[str]],
    ) -> str:
        """Build the SharedKey string-to-sign for a request."""
        return build_string_to_sign(url, method, headers, self._account_name)

    def generate_authorization_header(
        self,
        url: str,
        method: str,
        headers: Mapping[str, Optional[str]],
    ) -> str:
        """
        Generate the SharedKey ``Authorization`` value for a request.

        Args:
            url: Full request URL
            method: HTTP method (GET, PUT, etc.)
            headers: Request headers, matched case-insensitively

        Returns:
            "SharedKey account:signature"
        """
        string_to_sign = self.build_string_to_sign(url, method, headers)
        signature = self.compute_hmac256(string_to_sign)
        logger.debug(f"Signed {method.upper()} request for account {self._account_name}")
        return AUTHORIZATION_HEADER_FORMAT.format(
            account=self._account_name, signature=signature
        )


def compute_hmac256(account_key: str, string_to_sign: str) -> str:
    """
    Compute HMAC-SHA256 signature.

    Signature = Base64(HMAC-SHA256(UTF8(StringToSign), Base64Decode(AccountKey)))

    Args:
        account_key: Base64-encoded account key
        string_to_sign: Canonical string to sign

    Returns:
        Base64-encoded signature

    Raises:
        SigningConfigurationError: If the key is not valid Base64
    """
    try:
        key_bytes = base64.b64decode(account_key, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SigningConfigurationError("Account key is not a valid Base64 string") from exc

    signature_bytes = hmac.new(
        key_bytes,
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).digest()

    return base64.b64encode(signature_bytes).decode("utf-8")


def build_string_to_sign(
    url: str,
    method: str,
    headers: Mapping[str, Optional[str]],
    account_name: str,
) -> str:
    """
    Build canonical string for SharedKey signature computation.

    Args:
        url: Full request URL
        method: HTTP method
        headers: Request headers (any case)
        account_name: Storage account name

    Returns:
        Canonical string for signing
    """
    headers_lower = {k.lower(): v for k, v in headers.items()}

    parts = [method.upper()]
    for name in STANDARD_HEADERS:
        if name == "content-length":
            parts.append(_get_content_length(headers_lower))
        elif name == "date":
            # x-ms-date takes precedence over Date
            parts.append("" if "x-ms-date" in headers_lower else _get_header(headers_lower, name))
        else:
            parts.append(_get_header(headers_lower, name))

    parts.append(_build_canonicalized_headers(headers_lower))
    parts.append(_build_canonicalized_resource(url, account_name))

    return "\n".join(parts)


def _get_header(headers: Dict[str, Optional[str]], name: str) -> str:
    value = headers.get(name)
    return "" if value is None else str(value)


def _get_content_length(headers: Dict[str, Optional[str]]) -> str:
    content_length = _get_header(headers, "content-length")
    return "" if content_length == "0" else content_length


def _build_canonicalized_headers(headers: Dict[str, Optional[str]]) -> str:
    """
    Build CanonicalizedHeaders string.

    Every ``x-ms-`` header with a value, names lowercased and sorted,
    formatted as ``name:value``.
    """
    ms_headers = sorted(
        (name, str(value))
        for name, value in headers.items()
        if name.startswith("x-ms-") and value is not None
    )
    return "\n".join(f"{name}:{value}" for name, value in ms_headers)


def _build_canonicalized_resource(url: str, account_name: str) -> str:
    """
    Build CanonicalizedResource string.

    Format:
        /account-name/resource-path
        param1:value1
        param2:value2,value3
    """
    parsed = urlparse(url)

    path = parsed.path or "/"
    resource = f"/{account_name}{path}"

    if not parsed.query:
        return resource

    params = _parse_query_split_values(parsed.query)
    lines = [
        f"{name}:{','.join(sorted(values))}"
        for name, values in sorted(params.items())
    ]
    if lines:
        resource += "\n" + "\n".join(lines)

    return resource


def _parse_query_split_values(query: str) -> Dict[str, List[str]]:
    """
    Parse a query string into lowercase names and decoded, comma-split values.

    Repeated names are merged.
    """
    params: Dict[str, List[str]] = {}
    for name, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(name.lower(), []).extend(value.split(","))
    return params


def parse_authorization_header(auth_header: str) -> Tuple[str, str]:
    """
    Parse SharedKey Authorization header.

    Expected format: "SharedKey account:signature"

    Args:
        auth_header: Authorization header value

    Returns:
        Tuple of (account_name, signature)

    Raises:
        InvalidArgumentError: If header is malformed
    """
    parts = auth_header.strip().split(maxsplit=1)

    if len(parts) != 2:
        raise InvalidArgumentError(
            "Authorization header must be in format: SharedKey account:signature"
        )

    scheme, credentials = parts

    if scheme != "SharedKey":
        raise InvalidArgumentError(f"Expected SharedKey scheme, got: {scheme}")

    account_name, sep, signature = credentials.partition(":")

    if not sep or not account_name or not signature:
        raise InvalidArgumentError("Credentials must be in format: account:signature")

    return account_name, signature
