"""
Decomposition and re-assembly of blob and file URLs.

    parts = URLParser.parse("https://acct.blob.core.windows.net/c/b?snapshot=s&sv=...&sig=...")
    parts.container_name    # "c"
    parts.sas_query_parameters.signature
    parts.to_url()

Changing any SAS field on a parsed object requires signing a new SAS.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from storagesign.auth.exceptions import URLParseError
from storagesign.sas import constants as c
from storagesign.sas.query_parameters import (
    BaseSASQueryParameters,
    BlobServiceSASQueryParameters,
    FileServiceSASQueryParameters,
    url_encode,
)


def _build_url(
    scheme: Optional[str],
    host: Optional[str],
    path: str,
    snapshot_key: str,
    snapshot: Optional[str],
    sas_query_parameters: Optional[BaseSASQueryParameters],
    unparsed_parameters: Dict[str, List[str]],
) -> str:
    if not scheme or not host:
        raise URLParseError("Both 'scheme' and 'host' are required to build a URL")

    url = f"{scheme}://{host}"
    if path:
        url += "/" + quote(path, safe="/")

    query: List[str] = []
    if snapshot is not None:
        query.append(f"{snapshot_key}={url_encode(snapshot)}")
    if sas_query_parameters is not None:
        encoded = sas_query_parameters.encode()
        if encoded:
            query.append(encoded)
    for name, values in unparsed_parameters.items():
        # Commas are always encoded.
        query.append(f"{url_encode(name)}={url_encode(','.join(values))}")

    if query:
        url += "?" + "&".join(query)
    return url


@dataclass(frozen=True)
class BlobURLParts:
    """The components of a blob service, container or blob URL."""

    scheme: Optional[str] = None
    host: Optional[str] = None
    container_name: Optional[str] = None
    blob_name: Optional[str] = None
    snapshot: Optional[str] = None
    sas_query_parameters: Optional[BlobServiceSASQueryParameters] = None
    unparsed_parameters: Dict[str, List[str]] = field(default_factory=dict, hash=False)

    def to_url(self) -> str:
        """
        Assemble the URL.

        Raises:
            URLParseError: If scheme or host is missing
        """
        path = ""
        if self.container_name is not None:
            path = self.container_name
            if self.blob_name is not None:
                path += "/" + self.blob_name

        return _build_url(
            self.scheme,
            self.host,
            path,
            c.SNAPSHOT_QUERY_PARAMETER,
            self.snapshot,
            self.sas_query_parameters,
            self.unparsed_parameters,
        )


@dataclass(frozen=True)
class FileURLParts:
    """The components of a file service, share, directory or file URL."""

    scheme: Optional[str] = None
    host: Optional[str] = None
    share_name: Optional[str] = None
    file_path: Optional[str] = None
    share_snapshot: Optional[str] = None
    sas_query_parameters: Optional[FileServiceSASQueryParameters] = None
    unparsed_parameters: Dict[str, List[str]] = field(default_factory=dict, hash=False)

    def to_url(self) -> str:
        path = ""
        if self.share_name is not None:
            path = self.share_name
            if self.file_path is not None:
                path += "/" + self.file_path

        return _build_url(
            self.scheme,
            self.host,
            path,
            c.SHARE_SNAPSHOT_QUERY_PARAMETER,
            self.share_snapshot,
            self.sas_query_parameters,
            self.unparsed_parameters,
        )


class URLParser:
    """Parses blob and file URLs into their parts."""

    @staticmethod
    def parse(url: str) -> BlobURLParts:
        """
        Parse a blob service URL.

        Raises:
            URLParseError: If the URL or one of its SAS parameters is malformed
        """
        scheme, host, path, params = _split_url(url)
        container_name, blob_name = _split_path(path)
        snapshot = _pop_single(params, c.SNAPSHOT_QUERY_PARAMETER)

        sas_query_parameters = None
        if BlobServiceSASQueryParameters.has_sas_parameters(params):
            sas_query_parameters = BlobServiceSASQueryParameters.from_query_dict(
                params, remove_sas_parameters=True
            )

        return BlobURLParts(
            scheme=scheme,
            host=host,
            container_name=container_name,
            blob_name=blob_name,
            snapshot=snapshot,
            sas_query_parameters=sas_query_parameters,
            unparsed_parameters=params,
        )

    @staticmethod
    def parse_file_url(url: str) -> FileURLParts:
        """
        Parse a file service URL.

        Raises:
            URLParseError: If the URL or one of its SAS parameters is malformed
        """
        scheme, host, path, params = _split_url(url)
        share_name, file_path = _split_path(path)
        share_snapshot = _pop_single(params, c.SHARE_SNAPSHOT_QUERY_PARAMETER)

        sas_query_parameters = None
        if FileServiceSASQueryParameters.has_sas_parameters(params):
            sas_query_parameters = FileServiceSASQueryParameters.from_query_dict(
                params, remove_sas_parameters=True
            )

        return FileURLParts(
            scheme=scheme,
            host=host,
            share_name=share_name,
            file_path=file_path,
            share_snapshot=share_snapshot,
            sas_query_parameters=sas_query_parameters,
            unparsed_parameters=params,
        )


def _split_url(url: str) -> Tuple[str, str, str, Dict[str, List[str]]]:
    try:
        parsed = urlsplit(url)
    except ValueError as exc:
        raise URLParseError(f"URL could not be parsed: {url}") from exc

    if not parsed.scheme or not parsed.netloc:
        raise URLParseError(f"URL must have a scheme and a host: {url}")

    return parsed.scheme, parsed.netloc, unquote(parsed.path), parse_query_string(parsed.query)


def _split_path(path: str) -> Tuple[Optional[str], Optional[str]]:
    """Split "container/blob/name" into ("container", "blob/name")."""
    path = path.lstrip("/")
    if not path:
        return None, None
    first, sep, rest = path.partition("/")
    return first, (rest if sep and rest else None)


def _pop_single(params: Dict[str, List[str]], key: str) -> Optional[str]:
    values = params.pop(key, None)
    if not values:
        return None
    return ",".join(values)


def parse_query_string(query: str) -> Dict[str, List[str]]:
    """
    Parse a query string into an ordered mapping.

    Names are lowercased; values are URL-decoded and split on commas.
    """
    params: Dict[str, List[str]] = {}
    for name, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(name.lower(), []).extend(value.split(","))
    return params
