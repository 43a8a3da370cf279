# src/blobauth/contracts/models.py
"""Data types that cross component boundaries.

Everything here is a plain frozen dataclass. Secret material (account keys,
raw token cache entries) is excluded from repr so that logging a model never
leaks it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    import structlog
    from azure.storage.blob import BlobServiceClient

    from blobauth.auth.authorizer import BearerAuthorizer

# Refresh SAS tokens this long before they expire
DEFAULT_TOKEN_RENEW_BUFFER = timedelta(minutes=15)

SasTokenProvider = Callable[[], str]


@dataclass(frozen=True, slots=True)
class Subscription:
    """One subscription entry from the Azure CLI profile store.

    Attributes:
        id: Subscription id (GUID)
        tenant_id: Tenant the subscription belongs to
        is_default: True for the subscription selected by `az account set`
        name: Display name, informational only
    """

    id: str
    tenant_id: str
    is_default: bool = False
    name: str = ""

    @classmethod
    def from_profile_entry(cls, entry: Mapping[str, Any]) -> Subscription:
        """Build from an azureProfile.json subscription object."""
        return cls(
            id=str(entry.get("id", "")),
            tenant_id=str(entry.get("tenantId", "")),
            is_default=bool(entry.get("isDefault", False)),
            name=str(entry.get("name", "")),
        )


@dataclass(frozen=True, slots=True)
class CachedToken:
    """A token previously issued to the Azure CLI.

    Owned by the CLI's accessTokens.json; this package only reads it.
    The raw entry carries the access and refresh tokens and stays out of repr.
    """

    authority: str
    resource: str
    client_id: str
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_cache_entry(cls, entry: Mapping[str, Any]) -> CachedToken:
        """Build from one accessTokens.json entry."""
        return cls(
            authority=str(entry.get("_authority", "")),
            resource=str(entry.get("resource", "")),
            client_id=str(entry.get("_clientId", "")),
            raw=dict(entry),
        )

    @property
    def access_token(self) -> str:
        return str(self.raw.get("accessToken", ""))

    @property
    def refresh_token(self) -> str:
        return str(self.raw.get("refreshToken", ""))

    @property
    def expires_on(self) -> str:
        return str(self.raw.get("expiresOn", ""))


@dataclass(frozen=True, slots=True)
class AccountKey:
    """A storage account access key as listed by the control plane.

    permissions is lower-cased ("full" or "read").
    """

    name: str
    value: str = field(repr=False)
    permissions: str

    @property
    def is_full(self) -> bool:
        return self.permissions == "full"


@dataclass(frozen=True, slots=True)
class AuthorizerRequest:
    """Input to a single authorizer chain run.

    Constructed per resolution attempt and never persisted.
    """

    tenant_id: str
    logger: structlog.stdlib.BoundLogger


@dataclass(frozen=True, slots=True)
class BlobConfig:
    """Resolved access configuration for one blob storage target.

    Immutable once returned by BlobConfigResolver. At least one credential
    mechanism (account_key or sas_token_provider) is always present.
    """

    endpoint: str
    account_name: str
    account_key: str = field(default="", repr=False)
    sas_token_provider: SasTokenProvider | None = field(default=None, repr=False)
    token_renew_buffer: timedelta = DEFAULT_TOKEN_RENEW_BUFFER
    container: str = ""
    prefix: str = ""

    def __post_init__(self) -> None:
        if not self.account_key and self.sas_token_provider is None:
            raise ValueError(
                f"BlobConfig for account {self.account_name!r} has no credential. "
                "Provide account_key or sas_token_provider."
            )

    @property
    def credential_kind(self) -> Literal["sas_token", "account_key"]:
        """Which credential create_blob_service_client() will use."""
        if self.sas_token_provider is not None:
            return "sas_token"
        return "account_key"

    def create_blob_service_client(self) -> BlobServiceClient:
        """Create a BlobServiceClient for this configuration.

        A SAS token provider takes precedence over the shared account key.

        Raises:
            ImportError: If azure-storage-blob is not installed.
        """
        try:
            from azure.storage.blob import BlobServiceClient
        except ImportError as e:
            raise ImportError("azure-storage-blob is required to build a client. Install with: uv pip install azure-storage-blob") from e

        if self.sas_token_provider is not None:
            sas_token = self.sas_token_provider()
            # Ensure SAS token starts with '?' for URL concatenation
            sas = sas_token if sas_token.startswith("?") else f"?{sas_token}"
            return BlobServiceClient(f"{self.endpoint.rstrip('/')}{sas}")

        credential = {"account_name": self.account_name, "account_key": self.account_key}
        return BlobServiceClient(self.endpoint, credential=credential)


@dataclass(frozen=True, slots=True)
class AdlV1Config:
    """Access configuration for an Azure Data Lake Storage Gen1 endpoint.

    ADLv1 has no shared keys; requests are always signed by a bearer authorizer.
    """

    endpoint: str
    authorizer: BearerAuthorizer = field(repr=False)
