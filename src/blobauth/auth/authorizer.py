# src/blobauth/auth/authorizer.py
"""Bearer authorizer: signs outgoing requests with a refreshable token."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from azure.core.credentials import AccessToken, TokenCredential


class BearerAuthorizer:
    """Signs outgoing requests with a bearer token.

    Wraps any azure-core TokenCredential together with the scope it was
    validated for. It also satisfies the TokenCredential protocol itself,
    so it can be handed straight to Azure SDK clients such as
    StorageManagementClient.

    Instances are created fresh per resolution. Token caching and refresh
    are the wrapped credential's responsibility.
    """

    def __init__(self, credential: TokenCredential, scope: str, *, source: str) -> None:
        """Initialize the authorizer.

        Args:
            credential: Token source (azure-identity credential or CliTokenCredential)
            scope: Default scope requested when signing requests
            source: Name of the chain step that produced this authorizer
        """
        self._credential = credential
        self._scope = scope
        self._source = source

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def source(self) -> str:
        return self._source

    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        """Return a token for scopes, or for the default scope when none are given."""
        return self._credential.get_token(*(scopes or (self._scope,)), **kwargs)

    def authorization_header(self) -> str:
        return f"Bearer {self.get_token().token}"

    def authorize(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Add an Authorization header to headers (in place) and return it."""
        headers["Authorization"] = self.authorization_header()
        return headers

    def __repr__(self) -> str:
        return f"BearerAuthorizer(source={self._source!r}, scope={self._scope!r})"
