# src/blobauth/storage/blob_config.py
"""Top-level blob storage configuration resolution.

BlobConfigResolver merges, in order, with each source only filling fields
that are still empty:

    1. AZURE_STORAGE_ACCOUNT / AZURE_STORAGE_KEY
    2. the explicit endpoint, overridden by a "container@host/path" hint,
       then AZURE_STORAGE_CONNECTION_STRING and AZURE_STORAGE_SAS_TOKEN
    3. the account name from the endpoint's first hostname label
    4. the [storage] section of <config-dir>/config
    5. control-plane discovery (endpoint, then access key), skipped when
       account and credential both came from the environment
    6. the public-cloud blob endpoint for the account

Example:
    resolver = BlobConfigResolver()
    config = resolver.resolve(path_hint="logs@myacct.blob.core.windows.net/2024/")
    config.container  # "logs"
    config.prefix     # "2024"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import structlog

from blobauth.auth.chain import AuthorizerChain
from blobauth.contracts.errors import (
    AccountNotFoundError,
    BlobConfigError,
    ControlPlaneError,
    InvalidEndpointError,
    MalformedAccountIdError,
    MissingAccountError,
    MissingKeyError,
)
from blobauth.contracts.models import DEFAULT_TOKEN_RENEW_BUFFER, BlobConfig, SasTokenProvider
from blobauth.core import paths
from blobauth.core.environment import PUBLIC_CLOUD
from blobauth.core.logging import get_logger
from blobauth.storage.accounts import AccountResolver, select_account_key
from blobauth.storage.config_file import read_storage_settings
from blobauth.storage.connection_string import StorageConnectionString

# Local storage emulator; never decomposed into an account name
EMULATOR_ENDPOINT = "http://127.0.0.1:8080/devstoreaccount1/"

# Sources that count as explicitly configured credentials
_ENVIRONMENT_SOURCES = frozenset({"AZURE_STORAGE_ACCOUNT", "AZURE_STORAGE_KEY", "AZURE_STORAGE_SAS_TOKEN", "connection_string"})


@dataclass(frozen=True, slots=True)
class PathHint:
    """Parsed "container@host/path" location."""

    endpoint: str
    container: str
    prefix: str


def parse_path_hint(hint: str) -> PathHint | None:
    """Parse a "container@host/path" hint.

    Returns None when the hint has no "@" or what follows it is not a
    valid URL host.

    >>> parse_path_hint("logs@acct.blob.core.windows.net/a/b/")
    PathHint(endpoint='https://acct.blob.core.windows.net', container='logs', prefix='a/b')
    """
    at = hint.find("@")
    if at == -1:
        return None

    try:
        parts = urlsplit("https://" + hint[at + 1 :])
        # port parsing is lazy and raises ValueError on garbage
        parts.port
    except ValueError:
        return None
    if not parts.hostname:
        return None

    return PathHint(endpoint=f"https://{parts.netloc}", container=hint[:at], prefix=parts.path.strip("/"))


def account_from_endpoint(endpoint: str) -> str:
    """Return the first dot-delimited label of the endpoint's hostname.

    Returns "" for the emulator endpoint and for hostnames without a dot.

    Raises:
        InvalidEndpointError: If endpoint is not a parseable URL.
    """
    if not endpoint or endpoint == EMULATOR_ENDPOINT:
        return ""
    try:
        hostname = urlsplit(endpoint).hostname or ""
    except ValueError as e:
        raise InvalidEndpointError(f"Invalid storage endpoint {endpoint!r}: {e}") from e

    dot = hostname.find(".")
    if dot == -1:
        return ""
    return hostname[:dot]


def public_blob_endpoint(account_name: str) -> str:
    return f"https://{account_name}.blob.{PUBLIC_CLOUD.storage_endpoint_suffix}"


def _supplied_by_environment(builder: BlobConfigBuilder) -> bool:
    """True when both account and credential come from environment variables.

    Explicitly configured credentials never trigger control-plane calls.
    """
    credential_source = builder.sources.get("account_key") or builder.sources.get("sas_token_provider")
    return builder.sources.get("account_name") in _ENVIRONMENT_SOURCES and credential_source in _ENVIRONMENT_SOURCES


def static_sas_token(token: str) -> SasTokenProvider:
    """SAS token provider that always returns the same token."""

    def provider() -> str:
        return token

    return provider


@dataclass
class BlobConfigBuilder:
    """Mutable accumulator for a BlobConfig under resolution.

    fill() only sets empty fields and records which source set each one,
    so the resolution order is the only thing deciding precedence.
    """

    endpoint: str = ""
    account_name: str = ""
    account_key: str = field(default="", repr=False)
    sas_token_provider: SasTokenProvider | None = field(default=None, repr=False)
    container: str = ""
    prefix: str = ""
    sources: dict[str, str] = field(default_factory=dict)

    def fill(self, name: str, value: Any, source: str) -> bool:
        """Set field name to value if it is still empty. Returns True if set."""
        if not value or getattr(self, name):
            return False
        setattr(self, name, value)
        self.sources[name] = source
        return True

    def override(self, name: str, value: Any, source: str) -> None:
        setattr(self, name, value)
        self.sources[name] = source

    @property
    def has_credential(self) -> bool:
        return bool(self.account_key) or self.sas_token_provider is not None

    def unresolved(self) -> list[str]:
        """Names of required fields still missing."""
        missing = [name for name in ("endpoint", "account_name") if not getattr(self, name)]
        if not self.has_credential:
            missing.append("credential")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.unresolved()

    def build(self, token_renew_buffer: timedelta = DEFAULT_TOKEN_RENEW_BUFFER) -> BlobConfig:
        return BlobConfig(
            endpoint=self.endpoint,
            account_name=self.account_name,
            account_key=self.account_key,
            sas_token_provider=self.sas_token_provider,
            token_renew_buffer=token_renew_buffer,
            container=self.container,
            prefix=self.prefix,
        )


class BlobConfigResolver:
    """Resolves a BlobConfig from every available source.

    The control plane is only contacted when the endpoint or the credential
    is still missing after the local sources, and never when the account
    and credential were configured through environment variables.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        account_resolver: AccountResolver | None = None,
        token_renew_buffer: timedelta = DEFAULT_TOKEN_RENEW_BUFFER,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            environ: Environment to read; defaults to os.environ
            account_resolver: Control-plane resolver shared by every call;
                when None a fresh one is built for each resolution
            token_renew_buffer: Renewal buffer stored in the result
            logger: Logger injected into every component
        """
        self._environ: Mapping[str, str] = os.environ if environ is None else environ
        self._account_resolver = account_resolver
        self._token_renew_buffer = token_renew_buffer
        self._logger = logger if logger is not None else get_logger(__name__)

    def _new_account_resolver(self, config_dir: Path) -> AccountResolver:
        if self._account_resolver is not None:
            return self._account_resolver
        # Per resolution: subscription, authorizer and client are never reused
        chain = AuthorizerChain.from_environment(self._environ, config_dir=config_dir, logger=self._logger)
        return AccountResolver(chain, logger=self._logger)

    def resolve(self, endpoint: str = "", path_hint: str = "") -> BlobConfig:
        """Resolve the configuration for one storage target.

        Args:
            endpoint: Explicit blob endpoint URL, may be empty
            path_hint: Bucket/path argument, optionally "container@host/path"

        Raises:
            InvalidEndpointError: If the endpoint is not a URL.
            ConnectionStringError: If AZURE_STORAGE_CONNECTION_STRING is malformed.
            MissingAccountError: If no source names the account.
            MissingKeyError: If no credential can be found or discovered.
            NoDefaultSubscriptionError: If discovery is needed for the key and
                the CLI has no default subscription.
        """
        config_dir = paths.config_dir(self._environ)
        builder = BlobConfigBuilder()

        builder.fill("account_name", self._environ.get("AZURE_STORAGE_ACCOUNT", ""), "AZURE_STORAGE_ACCOUNT")
        builder.fill("account_key", self._environ.get("AZURE_STORAGE_KEY", ""), "AZURE_STORAGE_KEY")
        builder.fill("endpoint", endpoint, "explicit")

        # check if the path hint contains the storage endpoint
        hint = parse_path_hint(path_hint)
        if hint is not None:
            builder.override("endpoint", hint.endpoint, "path_hint")
            builder.override("container", hint.container, "path_hint")
            builder.override("prefix", hint.prefix, "path_hint")

        self._apply_environment_credentials(builder)

        builder.fill("account_name", account_from_endpoint(builder.endpoint), "endpoint")

        if not builder.account_name or not builder.account_key:
            settings = read_storage_settings(paths.storage_config_path(config_dir), logger=self._logger)
            if builder.fill("account_name", settings.account, "config_file"):
                self._logger.debug("using azure account", account=builder.account_name)
            builder.fill("account_key", settings.key, "config_file")

        # at this point the account is required
        if not builder.account_name:
            raise MissingAccountError(f"Missing account: configure via AZURE_STORAGE_ACCOUNT or {config_dir}/config")

        if not builder.is_complete and not _supplied_by_environment(builder):
            self._discover(builder, config_dir)

        if not builder.endpoint:
            builder.fill("endpoint", public_blob_endpoint(builder.account_name), "public_cloud")
            self._logger.debug("unable to detect endpoint for account", account=builder.account_name, endpoint=builder.endpoint)

        self._logger.debug("resolved blob config", account=builder.account_name, endpoint=builder.endpoint, sources=builder.sources)
        return builder.build(self._token_renew_buffer)

    def _apply_environment_credentials(self, builder: BlobConfigBuilder) -> None:
        connection_string = self._environ.get("AZURE_STORAGE_CONNECTION_STRING", "")
        if connection_string:
            parsed = StorageConnectionString.parse(connection_string)
            builder.fill("account_name", parsed.account_name, "connection_string")
            builder.fill("account_key", parsed.account_key, "connection_string")
            builder.fill("endpoint", parsed.endpoint, "connection_string")
            if parsed.shared_access_signature:
                builder.fill("sas_token_provider", static_sas_token(parsed.shared_access_signature), "connection_string")

        sas_token = self._environ.get("AZURE_STORAGE_SAS_TOKEN", "")
        if sas_token:
            builder.fill("sas_token_provider", static_sas_token(sas_token), "AZURE_STORAGE_SAS_TOKEN")

    def _missing_key(self, config_dir: Path) -> MissingKeyError:
        return MissingKeyError(f"Missing key: configure via AZURE_STORAGE_KEY or {config_dir}/config")

    def _discover(self, builder: BlobConfigBuilder, config_dir: Path) -> None:
        """Fill endpoint and, if needed, the access key from the control plane.

        With a credential already known, discovery is best effort and any
        failure leaves the endpoint empty. Without one, failures are fatal.
        """
        account = builder.account_name
        resolver = self._new_account_resolver(config_dir)

        try:
            discovered_endpoint, resource_group = resolver.resolve(account)
        except (AccountNotFoundError, MalformedAccountIdError, ControlPlaneError) as e:
            if not builder.has_credential:
                raise self._missing_key(config_dir) from e
            self._logger.debug("account discovery failed", account=account, error=str(e))
            return
        except BlobConfigError as e:
            # Authorizer or subscription failures: fatal only without a credential
            if not builder.has_credential:
                raise
            self._logger.debug("account discovery unavailable", account=account, error=str(e))
            return

        if builder.fill("endpoint", discovered_endpoint, "control_plane"):
            self._logger.debug("using detected account endpoint", account=account, endpoint=builder.endpoint)

        if builder.has_credential:
            return

        try:
            keys = resolver.keys(resource_group, account)
        except ControlPlaneError as e:
            raise self._missing_key(config_dir) from e
        if not keys:
            raise self._missing_key(config_dir)

        key = select_account_key(keys)
        if not key:
            raise self._missing_key(config_dir)
        builder.fill("account_key", key, "control_plane")
