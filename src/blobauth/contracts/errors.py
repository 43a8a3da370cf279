# src/blobauth/contracts/errors.py
"""Error taxonomy for credential and configuration resolution.

Three severities flow through the package:

- Fatal-to-chain: raised to the caller unchanged (no default subscription,
  malformed account id, account not found, missing account or key).
- Fatal-to-step: one credential source failed. Inside the authorizer chain
  these are converted to StepOutcome values and the chain advances.
- Candidate rejection: a single cached CLI token failed to convert. Only
  that candidate is skipped.

All exceptions derive from BlobConfigError so callers can catch the whole
family with one clause.
"""


class BlobConfigError(Exception):
    """Base class for all resolution failures."""

    pass


# =============================================================================
# Environment and local state
# =============================================================================


class CloudEnvironmentError(BlobConfigError):
    """Raised when AZURE_ENVIRONMENT names an unknown cloud."""

    pass


class NoDefaultSubscriptionError(BlobConfigError):
    """Raised when no subscription in the CLI profile is flagged default."""

    pass


class SubscriptionProfileError(NoDefaultSubscriptionError):
    """Raised when the CLI profile store cannot be read or parsed.

    An unreadable profile has no default subscription either, so callers
    catching NoDefaultSubscriptionError see both.
    """

    pass


class SettingsFileError(BlobConfigError):
    """Raised when the SDK auth file (AZURE_AUTH_LOCATION) is unusable."""

    pass


class ConnectionStringError(BlobConfigError):
    """Raised when a storage connection string cannot be parsed."""

    pass


# =============================================================================
# Token sources
# =============================================================================


class TokenValidationError(BlobConfigError):
    """Raised when a token source cannot produce a fresh token.

    Non-fatal to callers: it means "this candidate did not work".
    """

    pass


class TokenCacheError(BlobConfigError):
    """Raised when the CLI access token cache cannot be read.

    Fatal to the authorizer chain.
    """

    pass


class NoUsableCachedTokenError(BlobConfigError):
    """Raised when no cached CLI token for the authority could be converted."""

    pass


class ManagedIdentityError(BlobConfigError):
    """Raised when no token could be obtained from the managed identity endpoint."""

    pass


class AuthorizerChainError(BlobConfigError):
    """Raised when every step of the authorizer chain was skipped."""

    pass


# =============================================================================
# Control plane and final configuration
# =============================================================================


class ControlPlaneError(BlobConfigError):
    """Raised when a storage management API call fails."""

    pass


class MalformedAccountIdError(BlobConfigError):
    """Raised when a storage account resource id has an unexpected shape."""

    pass


class AccountNotFoundError(BlobConfigError):
    """Raised when the subscription has no storage account with the given name."""

    pass


class MissingAccountError(BlobConfigError):
    """Raised when no source provided a storage account name."""

    pass


class MissingKeyError(BlobConfigError):
    """Raised when no access key could be found or discovered."""

    pass


class InvalidEndpointError(BlobConfigError):
    """Raised when an explicit endpoint is not a parseable URL."""

    pass
