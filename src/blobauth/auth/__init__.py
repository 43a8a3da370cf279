"""Credential sources and the authorizer resolution chain.

Typical use:
    from blobauth.auth import AuthorizerChain

    authorizer = AuthorizerChain.from_environment().resolve()
    headers = authorizer.authorize({})
"""

from blobauth.auth.authorizer import BearerAuthorizer
from blobauth.auth.chain import (
    AuthorizerChain,
    AuthorizerStep,
    CachedTokenStep,
    EnvironmentCredentialStep,
    ManagedIdentityStep,
    SettingsFileStep,
)
from blobauth.auth.managed_identity import ManagedIdentityResolver
from blobauth.auth.subscription import SubscriptionResolver
from blobauth.auth.token_cache import CachedTokenLookup, CliTokenCredential
from blobauth.auth.validator import TokenValidator

__all__ = [
    "AuthorizerChain",
    "AuthorizerStep",
    "BearerAuthorizer",
    "CachedTokenLookup",
    "CachedTokenStep",
    "CliTokenCredential",
    "EnvironmentCredentialStep",
    "ManagedIdentityResolver",
    "ManagedIdentityStep",
    "SettingsFileStep",
    "SubscriptionResolver",
    "TokenValidator",
]
