"""
Account SAS signature values.

String-to-sign:
    accountname\\n
    signedpermissions\\n
    signedservice\\n
    signedresourcetype\\n
    signedstart\\n
    signedexpiry\\n
    signedIP\\n
    signedProtocol\\n
    signedversion\\n

Response header overrides never take part in an account SAS.

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/create-account-sas
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from storagesign.auth.exceptions import assert_not_none
from storagesign.auth.sharedkey import SharedKeyCredential
from storagesign.sas.constants import TARGET_STORAGE_VERSION
from storagesign.sas.ip_range import IPRange
from storagesign.sas.permissions import (
    AccountSASPermission,
    AccountSASResourceType,
    AccountSASService,
)
from storagesign.sas.protocol import SASProtocol
from storagesign.sas.query_parameters import AccountSASQueryParameters
from storagesign.sas.timestamps import format_iso8601_utc, to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSASSignatureValues:
    """Signature values for an account SAS."""

    version: Optional[str] = TARGET_STORAGE_VERSION
    protocol: Optional[SASProtocol] = None
    start_time: Optional[datetime] = None
    expiry_time: Optional[datetime] = None
    permissions: Optional[Union[str, AccountSASPermission]] = None
    ip_range: Optional[IPRange] = None
    services: Optional[Union[str, AccountSASService]] = None
    resource_types: Optional[Union[str, AccountSASResourceType]] = None

    def __post_init__(self):
        object.__setattr__(self, "start_time", to_utc(self.start_time))
        object.__setattr__(self, "expiry_time", to_utc(self.expiry_time))
        for name in ("permissions", "services", "resource_types"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                object.__setattr__(self, name, str(value))

    def string_to_sign(self, account_name: str) -> str:
        return "\n".join([
            account_name,
            self.permissions or "",
            self.services or "",
            self.resource_types or "",
            format_iso8601_utc(self.start_time),
            format_iso8601_utc(self.expiry_time),
            "" if self.ip_range is None else str(self.ip_range),
            "" if self.protocol is None else str(self.protocol),
            self.version or "",
            "",  # Account SAS requires an additional newline character
        ])

    def generate_sas_query_parameters(
        self, credential: SharedKeyCredential
    ) -> AccountSASQueryParameters:
        """
        Sign these values with an account's shared key.

        Raises:
            InvalidArgumentError: If a required value is missing
            SigningConfigurationError: If the account key is not valid Base64
        """
        assert_not_none("credential", credential)
        assert_not_none("services", self.services)
        assert_not_none("resource_types", self.resource_types)
        assert_not_none("expiry_time", self.expiry_time)
        assert_not_none("permissions", self.permissions)
        assert_not_none("version", self.version)

        signature = credential.compute_hmac256(self.string_to_sign(credential.account_name))
        logger.debug(
            f"Generated account SAS for {credential.account_name} "
            f"(ss={self.services}, srt={self.resource_types})"
        )

        return AccountSASQueryParameters(
            version=self.version,
            protocol=self.protocol,
            start_time=self.start_time,
            expiry_time=self.expiry_time,
            ip_range=self.ip_range,
            permissions=self.permissions,
            signature=signature,
            services=self.services,
            resource_types=self.resource_types,
        )


def generate_account_sas(
    credential: SharedKeyCredential,
    services: AccountSASService,
    resource_types: AccountSASResourceType,
    permission: AccountSASPermission,
    expiry_time: datetime,
    *,
    start_time: Optional[datetime] = None,
    version: Optional[str] = None,
    protocol: Optional[SASProtocol] = None,
    ip_range: Optional[IPRange] = None,
) -> str:
    """Generate an encoded account SAS."""
    values = AccountSASSignatureValues(
        version=version or TARGET_STORAGE_VERSION,
        protocol=protocol,
        start_time=start_time,
        expiry_time=expiry_time,
        permissions=permission,
        ip_range=ip_range,
        services=services,
        resource_types=resource_types,
    )
    return values.generate_sas_query_parameters(credential).encode()
