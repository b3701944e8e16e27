"""
Holder for a pre-built SAS token.

Used when the caller already has a token string, or a query parameters object
produced by one of the signature values builders.
"""

from urllib.parse import parse_qs

from storagesign.auth.exceptions import URLParseError, assert_not_none


class SASTokenCredential:
    """A SAS token that can be appended to request URLs."""

    __slots__ = ("_sas_token",)

    def __init__(self, sas_token: str):
        assert_not_none("sas_token", sas_token)
        self._sas_token = sas_token.lstrip("?")

    @classmethod
    def from_sas_token_string(cls, sas_token: str) -> "SASTokenCredential":
        """
        Create a credential from a token string, with or without a leading ``?``.

        Raises:
            URLParseError: If the token has no ``sig`` parameter
        """
        assert_not_none("sas_token", sas_token)
        token = sas_token.lstrip("?")
        params = parse_qs(token, keep_blank_values=True)
        if not params.get("sig", [""])[0]:
            raise URLParseError("SAS token is missing the 'sig' parameter")
        return cls(token)

    @classmethod
    def from_query_parameters(cls, query_parameters) -> "SASTokenCredential":
        """Create a credential from any SAS query parameters object."""
        assert_not_none("query_parameters", query_parameters)
        return cls.from_sas_token_string(query_parameters.encode())

    @property
    def sas_token(self) -> str:
        return self._sas_token

    def __repr__(self) -> str:
        return "SASTokenCredential(sas_token=***)"
