"""User delegation keys for signing SAS tokens on behalf of an Azure AD identity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utc_seconds(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


@dataclass(frozen=True)
class UserDelegationKey:
    """
    A key returned by the Get User Delegation Key operation.

    Start and expiry are kept as aware UTC datetimes with whole seconds;
    naive values are taken to be UTC.
    """

    signed_oid: Optional[str] = None  # skoid
    signed_tid: Optional[str] = None  # sktid
    signed_start: Optional[datetime] = None  # skt
    signed_expiry: Optional[datetime] = None  # ske
    signed_service: Optional[str] = None  # sks
    signed_version: Optional[str] = None  # skv
    value: Optional[str] = field(default=None, repr=False)  # Base64-encoded

    def __post_init__(self):
        object.__setattr__(self, "signed_start", _utc_seconds(self.signed_start))
        object.__setattr__(self, "signed_expiry", _utc_seconds(self.signed_expiry))
