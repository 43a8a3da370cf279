# src/blobauth/storage/accounts.py
"""Storage account discovery through the Azure management (control) plane.

Uses azure-mgmt-storage's StorageManagementClient, scoped to the CLI's
default subscription and authorized by the authorizer chain with that
subscription's tenant.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import structlog
from azure.core.exceptions import AzureError

from blobauth.contracts.errors import AccountNotFoundError, ControlPlaneError, MalformedAccountIdError
from blobauth.contracts.models import AccountKey
from blobauth.core.logging import get_logger

if TYPE_CHECKING:
    from azure.mgmt.storage import StorageManagementClient

    from blobauth.auth.authorizer import BearerAuthorizer
    from blobauth.auth.chain import AuthorizerChain

# /subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}/providers/...
_ACCOUNT_ID_SEGMENTS = 6
_RESOURCE_GROUP_SEGMENT = 4


def resource_group_from_id(account_id: str) -> str:
    """Extract the resource group from a storage account resource id.

    The id is split on "/" into at most six segments; the resource group is
    segment 4.

    Raises:
        MalformedAccountIdError: If the id has fewer than six segments.
    """
    parts = account_id.split("/", _ACCOUNT_ID_SEGMENTS - 1)
    if len(parts) != _ACCOUNT_ID_SEGMENTS:
        raise MalformedAccountIdError(f"Malformed account id: {account_id}")
    return parts[_RESOURCE_GROUP_SEGMENT]


def select_account_key(keys: Sequence[AccountKey]) -> str:
    """Pick the access key to use from a control-plane key listing.

    Looks for a full-permission key first, then takes the first key in the
    listing unconditionally, so the first key is always the result. This
    matches the established behaviour; whether the full-permission choice
    should win is an open product question.

    Raises:
        ValueError: If keys is empty.
    """
    if not keys:
        raise ValueError("No access keys to choose from")

    selected = ""
    # prefer full permission keys
    for key in keys:
        if key.is_full:
            selected = key.value
            break
    # if not just take the first one
    selected = keys[0].value
    return selected


def _permission_name(permissions: Any) -> str:
    # KeyPermission is a str-mixin Enum; str() would give "KeyPermission.FULL"
    value = getattr(permissions, "value", permissions)
    return str(value or "").lower()


def _storage_management_client(authorizer: BearerAuthorizer, subscription_id: str) -> StorageManagementClient:
    from azure.mgmt.storage import StorageManagementClient

    return StorageManagementClient(authorizer, subscription_id)


class AccountResolver:
    """Finds a storage account's blob endpoint, resource group and keys.

    The management client is created on first use and reused for the
    lifetime of this resolver, so create one instance per resolution.
    """

    def __init__(
        self,
        chain: AuthorizerChain,
        *,
        client_factory: Callable[[BearerAuthorizer, str], Any] = _storage_management_client,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._chain = chain
        self._client_factory = client_factory
        self._client: Any = None
        self._logger = logger if logger is not None else get_logger(__name__)

    def client(self) -> Any:
        """Return an authorized management client for the default subscription.

        Raises:
            NoDefaultSubscriptionError: If the CLI profile has no default subscription.
            BlobConfigError: If the authorizer chain fails.
        """
        if self._client is None:
            subscription = self._chain.subscriptions.default_subscription()
            authorizer = self._chain.resolve(subscription.tenant_id)
            self._client = self._client_factory(authorizer, subscription.id)
        return self._client

    def resolve(self, account_name: str) -> tuple[str, str]:
        """Return (blob endpoint, resource group) for account_name.

        Scans every storage account visible to the subscription.

        Raises:
            ControlPlaneError: If listing accounts fails.
            MalformedAccountIdError: If the matching account id is malformed.
            AccountNotFoundError: If no account has that name.
        """
        client = self.client()
        try:
            for account in client.storage_accounts.list():
                if account.name != account_name:
                    continue
                resource_group = resource_group_from_id(account.id or "")
                endpoints = account.primary_endpoints
                endpoint = (endpoints.blob if endpoints is not None else None) or ""
                self._logger.debug("found storage account", account=account_name, resource_group=resource_group, endpoint=endpoint)
                return endpoint, resource_group
        except AzureError as e:
            raise ControlPlaneError(f"Unable to list storage accounts: {e}") from e

        raise AccountNotFoundError(f"Azure account not found: {account_name}")

    def keys(self, resource_group: str, account_name: str) -> list[AccountKey]:
        """List the access keys of an account, in the order the API returns them.

        Raises:
            ControlPlaneError: If the API call fails.
        """
        client = self.client()
        try:
            result = client.storage_accounts.list_keys(resource_group, account_name)
        except AzureError as e:
            raise ControlPlaneError(f"Unable to list keys for storage account {account_name}: {e}") from e

        return [
            AccountKey(name=key.key_name or "", value=key.value or "", permissions=_permission_name(key.permissions))
            for key in (result.keys or [])
        ]
