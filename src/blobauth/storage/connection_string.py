# src/blobauth/storage/connection_string.py
"""Azure storage connection string parsing.

    DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=a2V5;EndpointSuffix=core.windows.net
    BlobEndpoint=https://acct.blob.core.windows.net/;SharedAccessSignature=sv=2022-11-02&sig=...

Keys are case-insensitive. Values may contain "=" (base64 keys, SAS
signatures), so each segment is split on the first "=" only.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from blobauth.contracts.errors import ConnectionStringError
from blobauth.core.environment import PUBLIC_CLOUD

_FIELDS: dict[str, str] = {
    "defaultendpointsprotocol": "default_endpoints_protocol",
    "accountname": "account_name",
    "accountkey": "account_key",
    "endpointsuffix": "endpoint_suffix",
    "blobendpoint": "blob_endpoint",
    "sharedaccesssignature": "shared_access_signature",
}


class StorageConnectionString(BaseModel):
    """Fields of a storage connection string relevant to blob access.

    Unrecognised keys (QueueEndpoint, TableEndpoint, ...) are dropped.
    """

    model_config = {"extra": "forbid", "frozen": True}

    default_endpoints_protocol: str = "https"
    account_name: str = ""
    account_key: str = Field(default="", repr=False)
    endpoint_suffix: str = PUBLIC_CLOUD.storage_endpoint_suffix
    blob_endpoint: str = ""
    shared_access_signature: str = Field(default="", repr=False)

    @classmethod
    def parse(cls, value: str) -> StorageConnectionString:
        """Parse a connection string.

        Raises:
            ConnectionStringError: If a segment is not key=value.
        """
        fields: dict[str, str] = {}
        for position, segment in enumerate(value.split(";")):
            segment = segment.strip()
            if not segment:
                continue
            name, sep, item = segment.partition("=")
            if not sep or not name.strip():
                raise ConnectionStringError(f"Malformed connection string: segment {position} is not key=value")
            target = _FIELDS.get(name.strip().lower())
            if target is not None and item:
                fields[target] = item.strip()
        return cls(**fields)

    @property
    def endpoint(self) -> str:
        """The blob endpoint, explicit or derived from protocol, account and suffix."""
        if self.blob_endpoint:
            return self.blob_endpoint
        if not self.account_name:
            return ""
        return f"{self.default_endpoints_protocol}://{self.account_name}.blob.{self.endpoint_suffix}"
