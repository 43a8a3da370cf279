# src/blobauth/auth/managed_identity.py
"""Managed identity token resolution for Azure-hosted compute."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

import structlog

from blobauth.auth.authorizer import BearerAuthorizer
from blobauth.auth.validator import TokenValidator
from blobauth.contracts.errors import ManagedIdentityError, TokenValidationError
from blobauth.core.environment import scope_for_resource
from blobauth.core.logging import get_logger

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential

IMDS_TOKEN_ENDPOINT = "http://169.254.169.254/metadata/identity/oauth2/token"

MANAGED_IDENTITY_SOURCE = "managed_identity"


def managed_identity_endpoint(environ: Mapping[str, str] | None = None) -> str:
    """Return the managed identity endpoint the platform exposes.

    App Service, Functions and Arc publish IDENTITY_ENDPOINT, older hosts
    MSI_ENDPOINT. Virtual machines and AKS use the instance metadata service.
    """
    env = os.environ if environ is None else environ
    return env.get("IDENTITY_ENDPOINT") or env.get("MSI_ENDPOINT") or IMDS_TOKEN_ENDPOINT


def _managed_identity_credential(client_id: str | None) -> TokenCredential:
    from azure.identity import ManagedIdentityCredential

    if client_id:
        return ManagedIdentityCredential(client_id=client_id)
    return ManagedIdentityCredential()


class ManagedIdentityResolver:
    """Obtains a token from the local managed identity endpoint.

    With no client id the system-assigned identity is used, otherwise the
    user-assigned identity with that client id. Endpoint discovery is done by
    azure-identity's ManagedIdentityCredential.
    """

    def __init__(
        self,
        validator: TokenValidator,
        *,
        credential_factory: Callable[[str | None], TokenCredential] = _managed_identity_credential,
        environ: Mapping[str, str] | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._validator = validator
        self._credential_factory = credential_factory
        self._environ = environ
        self._logger = logger if logger is not None else get_logger(__name__)

    def resolve(self, resource: str, client_id: str | None = None) -> BearerAuthorizer:
        """Return an authorizer for resource from the managed identity endpoint.

        Args:
            resource: Resource URI the token is requested for
            client_id: User-assigned identity client id; None or "" for system-assigned

        Raises:
            ManagedIdentityError: If no endpoint is reachable or the identity
                is not authorized for resource.
        """
        endpoint = managed_identity_endpoint(self._environ)
        identity = client_id or "system-assigned"
        self._logger.debug("requesting managed identity token", endpoint=endpoint, resource=resource, identity=identity)

        try:
            credential = self._credential_factory(client_id or None)
            return self._validator.validate(credential, scope_for_resource(resource), source=MANAGED_IDENTITY_SOURCE)
        except (TokenValidationError, ValueError) as e:
            raise ManagedIdentityError(f"Managed identity ({identity}) at {endpoint} could not issue a token for {resource}: {e}") from e
