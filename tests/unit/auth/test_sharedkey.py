"""Tests for SharedKey request signing."""

import base64
import hashlib
import hmac

import pytest

from storagesign.auth.exceptions import (
    InvalidArgumentError,
    SigningConfigurationError,
)
from storagesign.auth.sharedkey import (
    SharedKeyCredential,
    build_string_to_sign,
    compute_hmac256,
    parse_authorization_header,
)


@pytest.fixture
def account_key():
    """Generate a test account key."""
    return base64.b64encode(b"test-account-key-12345678901234567890").decode()


@pytest.fixture
def credential(account_key):
    return SharedKeyCredential("testaccount", account_key)


def reference_signature(account_key: str, string_to_sign: str) -> str:
    """Compute the expected signature independently of the library."""
    return base64.b64encode(
        hmac.new(
            base64.b64decode(account_key),
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).digest()
    ).decode()


class TestComputeHmac256:
    """Test the HMAC-SHA256 primitive."""

    def test_matches_reference(self, account_key):
        """Test signature matches an independent HMAC computation."""
        assert compute_hmac256(account_key, "string-to-sign") == reference_signature(
            account_key, "string-to-sign"
        )

    def test_deterministic(self, account_key):
        """Test that the same inputs always give the same signature."""
        first = compute_hmac256(account_key, "r\n\n2017-01-01T00:00:00Z")
        second = compute_hmac256(account_key, "r\n\n2017-01-01T00:00:00Z")
        assert first == second

    def test_utf8_string_to_sign(self, account_key):
        """Test that non-ASCII input is signed as UTF-8."""
        assert compute_hmac256(account_key, "/acct/c/blöb") == reference_signature(
            account_key, "/acct/c/blöb"
        )

    def test_invalid_base64_key(self):
        """Test that a malformed key is a configuration error."""
        with pytest.raises(SigningConfigurationError):
            compute_hmac256("not base64!!", "anything")

    def test_credential_delegates(self, credential, account_key):
        """Test that the credential signs with its own key."""
        assert credential.compute_hmac256("abc") == reference_signature(account_key, "abc")
        assert credential.compute_hmac256("abc") == "U8vwXHI0/kxU+oOxxHp5KLpaQk8lfE5FnCvhb4ZL2X0="


class TestSharedKeyCredential:
    """Test credential construction."""

    def test_requires_name_and_key(self):
        """Test that None values are rejected."""
        with pytest.raises(InvalidArgumentError, match="account_name"):
            SharedKeyCredential(None, "a2V5")
        with pytest.raises(InvalidArgumentError, match="account_key"):
            SharedKeyCredential("acct", None)

    def test_repr_hides_key(self, credential, account_key):
        """Test that the key never appears in repr."""
        assert account_key not in repr(credential)
        assert "testaccount" in repr(credential)

    def test_from_connection_string(self, account_key):
        """Test parsing a full connection string."""
        connection_string = (
            "DefaultEndpointsProtocol=https;AccountName=myaccount;"
            f"AccountKey={account_key};EndpointSuffix=core.windows.net"
        )

        credential = SharedKeyCredential.from_connection_string(connection_string)

        assert credential.account_name == "myaccount"
        assert credential.compute_hmac256("x") == reference_signature(account_key, "x")

    def test_from_connection_string_case_insensitive_keys(self, account_key):
        """Test that connection string keys match in any case."""
        credential = SharedKeyCredential.from_connection_string(
            f"accountname=myaccount;ACCOUNTKEY={account_key};"
        )
        assert credential.account_name == "myaccount"

    @pytest.mark.parametrize("connection_string", [
        "AccountName=myaccount",
        "AccountKey=a2V5",
        "AccountName=;AccountKey=a2V5",
        "DefaultEndpointsProtocol=https",
    ])
    def test_from_connection_string_missing_parts(self, connection_string):
        """Test that AccountName and AccountKey are both required."""
        with pytest.raises(InvalidArgumentError, match="AccountName"):
            SharedKeyCredential.from_connection_string(connection_string)

    def test_from_connection_string_malformed_segment(self):
        """Test that a segment without '=' is rejected."""
        with pytest.raises(InvalidArgumentError):
            SharedKeyCredential.from_connection_string("AccountName=a;garbage;AccountKey=a2V5")


class TestStringToSign:
    """Test SharedKey canonicalization."""

    def test_full_request(self, credential):
        """Test canonicalization of a request with standard and x-ms headers."""
        headers = {
            "Content-Length": "0",
            "Content-Type": "text/plain",
            "Date": "Mon, 01 Dec 2025 00:00:00 GMT",
            "x-ms-version": "2019-02-02",
            "x-ms-date": "Tue, 04 Dec 2025 10:30:00 GMT",
        }

        string_to_sign = credential.build_string_to_sign(
            "https://testaccount.blob.core.windows.net/container/blob?comp=metadata&timeout=30",
            "PUT",
            headers,
        )

        expected = (
            "PUT\n"
            "\n"             # Content-Encoding
            "\n"             # Content-Language
            "\n"             # Content-Length "0" becomes empty
            "\n"             # Content-MD5
            "text/plain\n"   # Content-Type
            "\n"             # Date is dropped when x-ms-date is present
            "\n"             # If-Modified-Since
            "\n"             # If-Match
            "\n"             # If-None-Match
            "\n"             # If-Unmodified-Since
            "\n"             # Range
            "x-ms-date:Tue, 04 Dec 2025 10:30:00 GMT\n"
            "x-ms-version:2019-02-02\n"
            "/testaccount/container/blob\n"
            "comp:metadata\n"
            "timeout:30"
        )
        assert string_to_sign == expected

    def test_all_standard_headers_in_order(self):
        """Test that every standard header lands in its fixed position."""
        headers = {
            "Range": "bytes=0-99",
            "If-Unmodified-Since": "ius",
            "If-None-Match": "inm",
            "If-Match": "im",
            "If-Modified-Since": "ims",
            "Date": "date",
            "Content-Type": "ct",
            "Content-MD5": "md5",
            "Content-Length": "100",
            "Content-Language": "en",
            "Content-Encoding": "gzip",
        }

        string_to_sign = build_string_to_sign("https://a.blob.core.windows.net/c", "get", headers, "a")

        assert string_to_sign.split("\n") == [
            "GET", "gzip", "en", "100", "md5", "ct", "date",
            "ims", "im", "inm", "ius", "bytes=0-99", "", "/a/c",
        ]

    def test_header_lookup_case_insensitive(self):
        """Test that standard headers are matched in any case."""
        string_to_sign = build_string_to_sign(
            "https://a.blob.core.windows.net/c",
            "GET",
            {"content-type": "application/xml", "CONTENT-LENGTH": "12"},
            "a",
        )
        lines = string_to_sign.split("\n")
        assert lines[3] == "12"
        assert lines[5] == "application/xml"

    def test_x_ms_headers_sorted_and_lowercased(self):
        """Test that x-ms headers are lowercased and sorted by name."""
        headers = {
            "X-MS-Version": "2019-02-02",
            "x-ms-blob-type": "BlockBlob",
            "x-ms-Date": "Tue, 04 Dec 2025 10:30:00 GMT",
            "x-ms-client-request-id": "123-456",
            "Host": "a.blob.core.windows.net",
        }

        string_to_sign = build_string_to_sign("https://a.blob.core.windows.net/c", "GET", headers, "a")
        lines = string_to_sign.split("\n")

        assert lines[12:16] == [
            "x-ms-blob-type:BlockBlob",
            "x-ms-client-request-id:123-456",
            "x-ms-date:Tue, 04 Dec 2025 10:30:00 GMT",
            "x-ms-version:2019-02-02",
        ]

    def test_x_ms_headers_with_none_value_skipped(self):
        """Test that x-ms headers without a value are left out."""
        string_to_sign = build_string_to_sign(
            "https://a.blob.core.windows.net/c",
            "GET",
            {"x-ms-version": "2019-02-02", "x-ms-meta-empty": None},
            "a",
        )
        assert "x-ms-meta-empty" not in string_to_sign

    def test_date_used_without_x_ms_date(self):
        """Test that Date is signed when x-ms-date is absent."""
        string_to_sign = build_string_to_sign(
            "https://a.blob.core.windows.net/c",
            "GET",
            {"Date": "Tue, 04 Dec 2025 10:30:00 GMT"},
            "a",
        )
        assert string_to_sign.split("\n")[6] == "Tue, 04 Dec 2025 10:30:00 GMT"

    def test_empty_path_becomes_slash(self):
        """Test canonicalized resource for a service-level URL."""
        string_to_sign = build_string_to_sign(
            "https://a.blob.core.windows.net?comp=list", "GET", {}, "a"
        )
        assert string_to_sign.endswith("\n/a/\ncomp:list")

    def test_query_parameters_sorted_and_merged(self):
        """Test query parameter names sorted, lowercased, values sorted and comma-joined."""
        string_to_sign = build_string_to_sign(
            "https://a.blob.core.windows.net/c?restype=container&B=3&b=2,1&comp=list",
            "GET",
            {},
            "a",
        )
        assert string_to_sign.endswith(
            "\n/a/c\nb:1,2,3\ncomp:list\nrestype:container"
        )

    def test_query_values_decoded(self):
        """Test that query values are URL-decoded."""
        string_to_sign = build_string_to_sign(
            "https://a.blob.core.windows.net/c?prefix=a%2Fb", "GET", {}, "a"
        )
        assert string_to_sign.endswith("\n/a/c\nprefix:a/b")


class TestAuthorizationHeader:
    """Test Authorization header generation."""

    def test_generate_authorization_header(self, credential, account_key):
        """Test the SharedKey header for a fixed request."""
        url = "https://testaccount.blob.core.windows.net/container?restype=container"
        headers = {
            "x-ms-date": "Tue, 04 Dec 2025 10:30:00 GMT",
            "x-ms-version": "2019-02-02",
        }
        expected_string_to_sign = (
            "GET\n\n\n\n\n\n\n\n\n\n\n\n"
            "x-ms-date:Tue, 04 Dec 2025 10:30:00 GMT\n"
            "x-ms-version:2019-02-02\n"
            "/testaccount/container\n"
            "restype:container"
        )

        header = credential.generate_authorization_header(url, "GET", headers)

        assert header == (
            "SharedKey testaccount:"
            + reference_signature(account_key, expected_string_to_sign)
        )
        assert header == "SharedKey testaccount:Qtuq9IKFK8s2tSUskh3QJOzWQC8yUmLf+ZDey6ZXqOI="

    def test_header_round_trip(self, credential):
        """Test that a generated header parses back to account and signature."""
        header = credential.generate_authorization_header(
            "https://testaccount.blob.core.windows.net/c", "GET", {}
        )

        account, signature = parse_authorization_header(header)

        assert account == "testaccount"
        assert signature == header.split(":", 1)[1]


class TestParseAuthorizationHeader:
    """Test Authorization header parsing."""

    @pytest.mark.parametrize("header", [
        "SharedKey",
        "Bearer token",
        "SharedKey accountsignature",
        "SharedKey :signature",
        "SharedKey account:",
    ])
    def test_malformed(self, header):
        """Test that malformed headers are rejected."""
        with pytest.raises(InvalidArgumentError):
            parse_authorization_header(header)

    def test_signature_with_colon_and_padding(self):
        """Test that only the first colon separates account and signature."""
        assert parse_authorization_header("SharedKey acct:ab:c==") == ("acct", "ab:c==")
