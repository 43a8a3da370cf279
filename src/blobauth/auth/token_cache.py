# src/blobauth/auth/token_cache.py
"""Lookup of tokens cached by the Azure CLI.

Older Azure CLI releases keep every issued token in
<config-dir>/accessTokens.json, a JSON list of entries shaped like:

    {
        "_authority": "https://login.microsoftonline.com/<tenant>",
        "_clientId": "04b07795-8ddb-461a-bbee-02f9e1bf7b46",
        "resource": "https://management.core.windows.net/",
        "accessToken": "...",
        "refreshToken": "...",
        "expiresOn": "2019-10-18 13:04:52.123456",
        "tokenType": "Bearer"
    }

expiresOn is local time. The file is only ever read here; refreshed tokens
live in memory for the lifetime of one CliTokenCredential.

Failure semantics:
    - A cache file that exists but cannot be read or parsed raises
      TokenCacheError (fatal to the authorizer chain).
    - A missing cache file means "no cached tokens".
    - A matching entry that fails to convert is logged and skipped.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from urllib.parse import urlsplit

import httpx
import structlog
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from blobauth.auth.authorizer import BearerAuthorizer
from blobauth.auth.validator import TokenValidator
from blobauth.contracts.errors import NoUsableCachedTokenError, TokenCacheError, TokenValidationError
from blobauth.contracts.models import CachedToken
from blobauth.core.environment import scope_for_resource
from blobauth.core.logging import get_logger

# Refresh when the access token has less than this left
DEFAULT_REFRESH_MARGIN = timedelta(minutes=5)

_EXPIRES_ON_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
)

TOKEN_CACHE_SOURCE = "cli_token_cache"


def parse_expires_on(value: str) -> int:
    """Parse a CLI expiresOn timestamp (local time) into epoch seconds.

    Raises:
        ValueError: If value matches none of the CLI formats.
    """
    for fmt in _EXPIRES_ON_FORMATS:
        try:
            # Naive datetime: timestamp() interprets it as local time
            return int(datetime.strptime(value, fmt).timestamp())
        except ValueError:
            continue
    raise ValueError(f"Unrecognised expiresOn value {value!r}")


def split_authority(authority: str) -> tuple[str, str]:
    """Split an authority URL into (base URL, tenant).

    >>> split_authority("https://login.microsoftonline.com/contoso.onmicrosoft.com")
    ('https://login.microsoftonline.com', 'contoso.onmicrosoft.com')

    Raises:
        ValueError: If the authority has no scheme, host or tenant path.
    """
    parts = urlsplit(authority)
    tenant = parts.path.strip("/")
    if not parts.scheme or not parts.netloc or not tenant:
        raise ValueError(f"Malformed authority {authority!r}")
    return f"{parts.scheme}://{parts.netloc}", tenant


class CliTokenCredential:
    """TokenCredential backed by one cached CLI token.

    The token is bound to the resource it was issued for, so requested
    scopes are ignored. When the access token is within refresh_margin of
    expiry it is renewed with the refresh token against the authority's
    v1 token endpoint.
    """

    def __init__(
        self,
        token: CachedToken,
        *,
        http_client: httpx.Client | None = None,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Convert a cache entry into a credential.

        Raises:
            ValueError: If the entry is malformed (bad authority, bad expiry,
                no client id, no token material).
        """
        base, tenant = split_authority(token.authority)
        if not token.client_id:
            raise ValueError(f"Cached token for {token.authority} has no client id")
        if not token.access_token and not token.refresh_token:
            raise ValueError(f"Cached token for {token.authority} has neither access nor refresh token")

        self._token_endpoint = f"{base}/{tenant}/oauth2/token"
        self._client_id = token.client_id
        self._resource = token.resource
        self._access_token = token.access_token
        self._refresh_token = token.refresh_token
        self._expires_on = parse_expires_on(token.expires_on) if token.expires_on else 0
        self._http_client = http_client
        self._refresh_margin = refresh_margin.total_seconds()
        self._clock = clock

    @property
    def token_endpoint(self) -> str:
        return self._token_endpoint

    def get_token(self, *scopes: str, **kwargs: object) -> AccessToken:
        if not self._access_token or self._expires_on - self._clock() <= self._refresh_margin:
            self._refresh()
        return AccessToken(self._access_token, self._expires_on)

    def _refresh(self) -> None:
        """Exchange the refresh token for a new access token.

        Raises:
            ClientAuthenticationError: If there is no refresh token or the
                token endpoint rejects it.
            httpx.HTTPError: For network failures.
            ValueError: If the response body is not a token response.
        """
        if not self._refresh_token:
            raise ClientAuthenticationError(message=f"Cached token for {self._resource} expired and has no refresh token")

        data = {
            "grant_type": "refresh_token",
            "client_id": self._client_id,
            "refresh_token": self._refresh_token,
            "resource": self._resource,
        }
        if self._http_client is not None:
            response = self._http_client.post(self._token_endpoint, data=data)
        else:
            with httpx.Client(timeout=30.0) as client:
                response = client.post(self._token_endpoint, data=data)

        if response.is_error:
            raise ClientAuthenticationError(
                message=f"Token refresh rejected by {self._token_endpoint} (HTTP {response.status_code}): {_error_description(response)}"
            )

        payload = response.json()
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise ValueError(f"Token endpoint {self._token_endpoint} returned no access_token")

        self._access_token = str(payload["access_token"])
        self._refresh_token = str(payload.get("refresh_token") or self._refresh_token)
        if payload.get("expires_on"):
            self._expires_on = int(payload["expires_on"])
        else:
            self._expires_on = int(self._clock()) + int(payload.get("expires_in") or 3600)


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error") or body)
    return response.text


def load_cached_tokens(path: Path) -> list[CachedToken]:
    """Read every entry of an accessTokens.json file, in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        TokenCacheError: If the file cannot be read or is not a list of objects.
    """
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise
    except OSError as e:
        raise TokenCacheError(f"Unable to read Azure CLI token cache {path}: {e}") from e

    try:
        entries = json.loads(text)
    except json.JSONDecodeError as e:
        raise TokenCacheError(f"Azure CLI token cache {path} is not valid JSON: {e}") from e

    if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
        raise TokenCacheError(f"Azure CLI token cache {path} must be a JSON list of objects")

    return [CachedToken.from_cache_entry(entry) for entry in entries]


class CachedTokenLookup:
    """Finds a usable CLI-cached token for a tenant authority."""

    def __init__(
        self,
        path: Path,
        validator: TokenValidator,
        *,
        http_client: httpx.Client | None = None,
        credential_factory: Callable[[CachedToken], CliTokenCredential] | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the lookup.

        Args:
            path: accessTokens.json location
            validator: Validator applied to each candidate
            http_client: Client used for refresh calls (one per refresh if None)
            credential_factory: Converts a cache entry to a credential;
                defaults to CliTokenCredential
            logger: Logger for candidate rejections
        """
        self._path = path
        self._validator = validator
        self._http_client = http_client
        self._credential_factory = credential_factory or self._default_credential
        self._logger = logger if logger is not None else get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def _default_credential(self, token: CachedToken) -> CliTokenCredential:
        return CliTokenCredential(token, http_client=self._http_client)

    def find(self, authority: str) -> list[CachedToken]:
        """Return cached tokens issued by authority, in file order.

        Raises:
            TokenCacheError: If the cache file exists but is unreadable.
        """
        try:
            tokens = load_cached_tokens(self._path)
        except FileNotFoundError:
            self._logger.debug("no azure cli token cache", path=str(self._path))
            return []
        return [token for token in tokens if token.authority == authority]

    def resolve(self, authority: str) -> BearerAuthorizer:
        """Return an authorizer for the first convertible cached token.

        Raises:
            TokenCacheError: If the cache file is unreadable (fatal).
            NoUsableCachedTokenError: If no candidate converted.
        """
        candidates = self.find(authority)
        for token in candidates:
            self._logger.debug("found cached token", resource=token.resource, authority=token.authority)
            try:
                credential = self._credential_factory(token)
                return self._validator.validate(credential, scope_for_resource(token.resource), source=TOKEN_CACHE_SOURCE)
            except (ValueError, TokenValidationError) as e:
                self._logger.debug("rejected cached token", resource=token.resource, authority=token.authority, error=str(e))

        raise NoUsableCachedTokenError(f"No usable cached token for {authority} ({len(candidates)} candidates in {self._path})")
