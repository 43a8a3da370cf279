"""Shared contracts for cross-component data types.

This package is a LEAF MODULE with no runtime dependencies on auth/ or
storage/. The authorizer type is referenced for annotations only.

Import patterns:
    from blobauth.contracts import BlobConfig, StepOutcome, MissingKeyError
"""

from blobauth.contracts.errors import (
    AccountNotFoundError,
    AuthorizerChainError,
    BlobConfigError,
    CloudEnvironmentError,
    ConnectionStringError,
    ControlPlaneError,
    InvalidEndpointError,
    MalformedAccountIdError,
    ManagedIdentityError,
    MissingAccountError,
    MissingKeyError,
    NoDefaultSubscriptionError,
    NoUsableCachedTokenError,
    SettingsFileError,
    SubscriptionProfileError,
    TokenCacheError,
    TokenValidationError,
)
from blobauth.contracts.models import (
    DEFAULT_TOKEN_RENEW_BUFFER,
    AccountKey,
    AdlV1Config,
    AuthorizerRequest,
    BlobConfig,
    CachedToken,
    SasTokenProvider,
    Subscription,
)
from blobauth.contracts.outcomes import StepOutcome

__all__ = [
    "DEFAULT_TOKEN_RENEW_BUFFER",
    "AccountKey",
    "AccountNotFoundError",
    "AdlV1Config",
    "AuthorizerChainError",
    "AuthorizerRequest",
    "BlobConfig",
    "BlobConfigError",
    "CachedToken",
    "CloudEnvironmentError",
    "ConnectionStringError",
    "ControlPlaneError",
    "InvalidEndpointError",
    "MalformedAccountIdError",
    "ManagedIdentityError",
    "MissingAccountError",
    "MissingKeyError",
    "NoDefaultSubscriptionError",
    "NoUsableCachedTokenError",
    "SasTokenProvider",
    "SettingsFileError",
    "StepOutcome",
    "Subscription",
    "SubscriptionProfileError",
    "TokenCacheError",
    "TokenValidationError",
]
