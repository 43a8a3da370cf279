# src/blobauth/auth/chain.py
"""Authorizer resolution chain.

Produces one bearer authorizer by trying credential sources from the most
explicit to the most ambient:

    1. tenant      default subscription's tenant, when none was given (fatal)
    2. environment service principal from AZURE_* variables      (soft)
    3. auth file   service principal from AZURE_AUTH_LOCATION      (soft)
    4. CLI cache   cached Azure CLI token for the tenant authority (soft,
                   except an unreadable cache file, which aborts)
    5. managed     platform managed identity                       (final)
       identity

Steps 2-5 are objects implementing AuthorizerStep. Each returns a
StepOutcome instead of raising, so the chain's control flow is just the
ordered step list:

    chain = AuthorizerChain.from_environment()
    authorizer = chain.resolve()            # tenant from the CLI profile
    authorizer = chain.resolve("contoso")   # explicit tenant
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from blobauth.auth.authorizer import BearerAuthorizer
from blobauth.auth.managed_identity import ManagedIdentityResolver
from blobauth.auth.service_principal import environment_client_credential, load_auth_file
from blobauth.auth.subscription import SubscriptionResolver
from blobauth.auth.token_cache import CachedTokenLookup
from blobauth.auth.validator import TokenValidator
from blobauth.contracts.errors import (
    AuthorizerChainError,
    BlobConfigError,
    ManagedIdentityError,
    NoUsableCachedTokenError,
    TokenCacheError,
)
from blobauth.contracts.models import AuthorizerRequest
from blobauth.contracts.outcomes import StepOutcome
from blobauth.core import paths
from blobauth.core.environment import EnvironmentSettings
from blobauth.core.logging import get_logger

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential


class AuthorizerStep(Protocol):
    """One credential source in the chain."""

    name: str

    def attempt(self, request: AuthorizerRequest) -> StepOutcome:
        """Try to produce an authorizer for request.

        Must not raise for expected failures; report them as outcomes.
        """
        ...


class EnvironmentCredentialStep:
    """Service principal from the standard environment variables."""

    name = "environment"

    def __init__(
        self,
        settings: EnvironmentSettings,
        validator: TokenValidator,
        *,
        credential_factory: Callable[[EnvironmentSettings], TokenCredential] = environment_client_credential,
    ) -> None:
        self._settings = settings
        self._validator = validator
        self._credential_factory = credential_factory

    def attempt(self, request: AuthorizerRequest) -> StepOutcome:
        if not (self._settings.has_client_secret or self._settings.has_client_certificate):
            return StepOutcome.skip(self.name, "no client credentials in environment")
        try:
            credential = self._credential_factory(self._settings)
            authorizer = self._validator.validate(credential, self._settings.scope, source=self.name)
        except (BlobConfigError, ValueError, OSError) as e:
            return StepOutcome.skip(self.name, str(e))
        return StepOutcome.success(self.name, authorizer)


class SettingsFileStep:
    """Service principal from the SDK auth file named by AZURE_AUTH_LOCATION."""

    name = "auth_file"

    def __init__(self, settings: EnvironmentSettings, validator: TokenValidator) -> None:
        self._settings = settings
        self._validator = validator

    def attempt(self, request: AuthorizerRequest) -> StepOutcome:
        if not self._settings.auth_location:
            return StepOutcome.skip(self.name, "AZURE_AUTH_LOCATION not set")
        try:
            auth_file = load_auth_file(Path(self._settings.auth_location).expanduser())
            authorizer = self._validator.validate(auth_file.credential(), self._settings.scope, source=self.name)
        except (BlobConfigError, ValueError, OSError) as e:
            return StepOutcome.skip(self.name, str(e))
        return StepOutcome.success(self.name, authorizer)


class CachedTokenStep:
    """Cached Azure CLI token for the request tenant's authority."""

    name = "cli_token_cache"

    def __init__(self, settings: EnvironmentSettings, lookup: CachedTokenLookup) -> None:
        self._settings = settings
        self._lookup = lookup

    def attempt(self, request: AuthorizerRequest) -> StepOutcome:
        authority = self._settings.authority_for(request.tenant_id)
        request.logger.debug("looking for access token", authority=authority)
        try:
            authorizer = self._lookup.resolve(authority)
        except TokenCacheError as e:
            return StepOutcome.abort(self.name, e)
        except NoUsableCachedTokenError as e:
            return StepOutcome.skip(self.name, str(e), e)
        return StepOutcome.success(self.name, authorizer)


class ManagedIdentityStep:
    """Platform managed identity. Last resort: failure aborts the chain."""

    name = "managed_identity"

    def __init__(self, settings: EnvironmentSettings, resolver: ManagedIdentityResolver) -> None:
        self._settings = settings
        self._resolver = resolver

    def attempt(self, request: AuthorizerRequest) -> StepOutcome:
        request.logger.debug("falling back to managed identity")
        try:
            authorizer = self._resolver.resolve(self._settings.resource, self._settings.client_id or None)
        except ManagedIdentityError as e:
            return StepOutcome.abort(self.name, e)
        return StepOutcome.success(self.name, authorizer)


class AuthorizerChain:
    """Resolves one bearer authorizer from an ordered list of steps.

    First success wins. A step reporting "abort" stops the chain and its
    error is raised unchanged. Skipped steps are logged at debug level.
    """

    def __init__(
        self,
        steps: Sequence[AuthorizerStep],
        subscriptions: SubscriptionResolver,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize with steps to try in order.

        Args:
            steps: AuthorizerStep instances, tried in order
            subscriptions: Source of the default tenant
            logger: Logger passed to every step through the request

        Raises:
            ValueError: If steps is empty
        """
        if not steps:
            raise ValueError("AuthorizerChain requires at least one step")
        self._steps = list(steps)
        self._subscriptions = subscriptions
        self._logger = logger if logger is not None else get_logger(__name__)

    @property
    def steps(self) -> list[AuthorizerStep]:
        return list(self._steps)

    @property
    def subscriptions(self) -> SubscriptionResolver:
        return self._subscriptions

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        config_dir: Path | None = None,
        http_client: httpx.Client | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> AuthorizerChain:
        """Build the standard chain from an environment mapping.

        Args:
            environ: Environment to read; defaults to os.environ
            config_dir: Azure CLI config directory; defaults to AZURE_CONFIG_DIR or ~/.azure
            http_client: Client used for CLI token refresh calls
            logger: Logger injected into every component

        Raises:
            CloudEnvironmentError: If AZURE_ENVIRONMENT is unknown.
        """
        log = logger if logger is not None else get_logger(__name__)
        settings = EnvironmentSettings.from_environ(environ)
        directory = config_dir if config_dir is not None else paths.config_dir(environ)
        validator = TokenValidator(logger=log)

        steps: list[AuthorizerStep] = [
            EnvironmentCredentialStep(settings, validator),
            SettingsFileStep(settings, validator),
            CachedTokenStep(
                settings,
                CachedTokenLookup(paths.access_tokens_path(directory), validator, http_client=http_client, logger=log),
            ),
            ManagedIdentityStep(settings, ManagedIdentityResolver(validator, environ=environ, logger=log)),
        ]
        return cls(steps, SubscriptionResolver(paths.profile_path(directory), logger=log), logger=log)

    def resolve(self, tenant_id: str | None = None) -> BearerAuthorizer:
        """Return the first authorizer any step can produce.

        Args:
            tenant_id: Tenant to authorize against; the default subscription's
                tenant when empty

        Raises:
            NoDefaultSubscriptionError: If tenant_id is empty and the CLI
                profile has no default subscription.
            BlobConfigError: The error of an aborting step.
            AuthorizerChainError: If every step was skipped.
        """
        if not tenant_id:
            tenant_id = self._subscriptions.default_subscription().tenant_id

        request = AuthorizerRequest(tenant_id=tenant_id, logger=self._logger.bind(tenant_id=tenant_id))
        skipped: list[str] = []

        for step in self._steps:
            outcome = step.attempt(request)
            if outcome.status == "success":
                request.logger.debug("authorizer resolved", step=outcome.step)
                # __post_init__ guarantees an authorizer on success
                assert outcome.authorizer is not None
                return outcome.authorizer
            if outcome.status == "abort":
                request.logger.debug("authorizer chain aborted", step=outcome.step, reason=outcome.reason)
                assert outcome.error is not None
                raise outcome.error
            request.logger.debug("authorizer step skipped", step=outcome.step, reason=outcome.reason)
            skipped.append(f"{outcome.step}: {outcome.reason}")

        raise AuthorizerChainError(f"No credential source produced an authorizer for tenant {tenant_id} ({'; '.join(skipped)})")
