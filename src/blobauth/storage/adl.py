# src/blobauth/storage/adl.py
"""Azure Data Lake Storage Gen1 configuration.

ADLv1 accepts only bearer tokens, so its configuration is the endpoint plus
an authorizer from the chain. The tenant comes from the CLI's default
subscription unless given.
"""

from __future__ import annotations

from blobauth.auth.chain import AuthorizerChain
from blobauth.contracts.errors import InvalidEndpointError
from blobauth.contracts.models import AdlV1Config


def resolve_adlv1_config(endpoint: str, chain: AuthorizerChain, *, tenant_id: str | None = None) -> AdlV1Config:
    """Resolve an ADLv1 configuration for endpoint.

    Raises:
        InvalidEndpointError: If endpoint is empty.
        BlobConfigError: If the authorizer chain fails.
    """
    if not endpoint.strip():
        raise InvalidEndpointError("ADLv1 requires an endpoint such as https://myaccount.azuredatalakestore.net")
    return AdlV1Config(endpoint=endpoint, authorizer=chain.resolve(tenant_id))
