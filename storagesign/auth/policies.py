"""
httpx authentication hooks that attach storage signatures to requests.

Example:
    credential = SharedKeyCredential("myaccount", key)
    with httpx.Client(auth=SharedKeyAuth(credential)) as client:
        client.get("https://myaccount.blob.core.windows.net/container?restype=container")
"""

import logging
from email.utils import formatdate
from typing import Generator

import httpx

from storagesign.auth.exceptions import assert_not_none
from storagesign.auth.sastoken import SASTokenCredential
from storagesign.auth.sharedkey import SharedKeyCredential

logger = logging.getLogger(__name__)


class SharedKeyAuth(httpx.Auth):
    """Signs each request with a SharedKey ``Authorization`` header."""

    def __init__(self, credential: SharedKeyCredential):
        assert_not_none("credential", credential)
        self.credential = credential

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if "x-ms-date" not in request.headers:
            request.headers["x-ms-date"] = formatdate(usegmt=True)

        request.headers["Authorization"] = self.credential.generate_authorization_header(
            str(request.url), request.method, request.headers
        )
        yield request


class SASTokenAuth(httpx.Auth):
    """Appends a SAS token to the query string of each request."""

    def __init__(self, credential: SASTokenCredential):
        assert_not_none("credential", credential)
        self.credential = credential

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self.credential.sas_token
        if token:
            query = request.url.query.decode("ascii")
            merged = f"{query}&{token}" if query else token
            request.url = request.url.copy_with(query=merged.encode("ascii"))
            logger.debug(f"Appended SAS token to {request.method} {request.url.path}")
        yield request
