# src/blobauth/auth/validator.py
"""Token validation: prove a token source works before trusting it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog
from azure.core.exceptions import AzureError

from blobauth.auth.authorizer import BearerAuthorizer
from blobauth.contracts.errors import TokenValidationError
from blobauth.core.logging import get_logger

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential


class TokenValidator:
    """Confirms a token source can issue a fresh token and wraps it.

    Fetching a token forces the source to refresh when its current token is
    expired or close to expiry. Any failure (refresh denied, malformed token,
    network error) becomes TokenValidationError, which callers treat as
    "this candidate did not work".
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger if logger is not None else get_logger(__name__)

    def validate(self, credential: TokenCredential, scope: str, *, source: str) -> BearerAuthorizer:
        """Ensure credential is fresh and return a bearer authorizer for it.

        Args:
            credential: Token source to check
            scope: Scope to request
            source: Name of the credential source, used in logs and errors

        Returns:
            BearerAuthorizer wrapping credential

        Raises:
            TokenValidationError: If no fresh token could be obtained
        """
        try:
            token = credential.get_token(scope)
        except (AzureError, httpx.HTTPError, ValueError) as e:
            raise TokenValidationError(f"{source}: unable to obtain a token for {scope}: {e}") from e

        if not token.token:
            raise TokenValidationError(f"{source}: token source returned an empty token for {scope}")

        self._logger.debug("token validated", source=source, scope=scope, expires_on=token.expires_on)
        return BearerAuthorizer(credential, scope, source=source)
