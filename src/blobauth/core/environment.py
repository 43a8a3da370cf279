# src/blobauth/core/environment.py
"""Cloud environments and the standard Azure SDK environment settings.

EnvironmentSettings is read once from an environment mapping (os.environ by
default) and then passed around; nothing else in blobauth reads client
credential variables directly.

Recognised variables:
    AZURE_ENVIRONMENT            cloud name (default AzurePublicCloud)
    AZURE_TENANT_ID              service principal tenant
    AZURE_CLIENT_ID              service principal or user-assigned identity
    AZURE_CLIENT_SECRET          service principal secret
    AZURE_CERTIFICATE_PATH       service principal certificate (PEM/PFX)
    AZURE_CERTIFICATE_PASSWORD   certificate password
    AZURE_SUBSCRIPTION_ID        informational
    AZURE_AD_RESOURCE            token resource (default: resource manager)
    AZURE_AD_ENDPOINT            active directory endpoint override
    AZURE_AUTH_LOCATION          SDK auth file path
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel

from blobauth.contracts.errors import CloudEnvironmentError


class CloudEnvironment(BaseModel):
    """Endpoints of one Azure cloud."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str
    active_directory_endpoint: str
    resource_manager_endpoint: str
    storage_endpoint_suffix: str


PUBLIC_CLOUD = CloudEnvironment(
    name="AzurePublicCloud",
    active_directory_endpoint="https://login.microsoftonline.com/",
    resource_manager_endpoint="https://management.azure.com/",
    storage_endpoint_suffix="core.windows.net",
)

CHINA_CLOUD = CloudEnvironment(
    name="AzureChinaCloud",
    active_directory_endpoint="https://login.chinacloudapi.cn/",
    resource_manager_endpoint="https://management.chinacloudapi.cn/",
    storage_endpoint_suffix="core.chinacloudapi.cn",
)

US_GOVERNMENT_CLOUD = CloudEnvironment(
    name="AzureUSGovernmentCloud",
    active_directory_endpoint="https://login.microsoftonline.us/",
    resource_manager_endpoint="https://management.usgovcloudapi.net/",
    storage_endpoint_suffix="core.usgovcloudapi.net",
)

GERMAN_CLOUD = CloudEnvironment(
    name="AzureGermanCloud",
    active_directory_endpoint="https://login.microsoftonline.de/",
    resource_manager_endpoint="https://management.microsoftazure.de/",
    storage_endpoint_suffix="core.cloudapi.de",
)

_CLOUDS: dict[str, CloudEnvironment] = {
    cloud.name.lower(): cloud for cloud in (PUBLIC_CLOUD, CHINA_CLOUD, US_GOVERNMENT_CLOUD, GERMAN_CLOUD)
}


def cloud_environment(name: str) -> CloudEnvironment:
    """Look up a cloud by name (case-insensitive). Empty means public cloud.

    Raises:
        CloudEnvironmentError: If the name is not a known cloud.
    """
    if not name.strip():
        return PUBLIC_CLOUD
    try:
        return _CLOUDS[name.strip().lower()]
    except KeyError:
        known = ", ".join(cloud.name for cloud in _CLOUDS.values())
        raise CloudEnvironmentError(f"Unknown AZURE_ENVIRONMENT {name!r}. Expected one of: {known}") from None


def scope_for_resource(resource: str) -> str:
    """Convert a v1 resource URI into a v2 ".default" scope.

    >>> scope_for_resource("https://management.azure.com/")
    'https://management.azure.com/.default'
    """
    if resource.endswith("/.default"):
        return resource
    return f"{resource.rstrip('/')}/.default"


class EnvironmentSettings(BaseModel):
    """Standard Azure SDK settings taken from the process environment."""

    model_config = {"extra": "forbid", "frozen": True}

    cloud: CloudEnvironment = PUBLIC_CLOUD
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    certificate_path: str = ""
    certificate_password: str = ""
    subscription_id: str = ""
    resource: str = PUBLIC_CLOUD.resource_manager_endpoint
    active_directory_endpoint: str = PUBLIC_CLOUD.active_directory_endpoint
    auth_location: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> EnvironmentSettings:
        """Read settings from an environment mapping.

        Args:
            environ: Mapping to read; defaults to os.environ.

        Raises:
            CloudEnvironmentError: If AZURE_ENVIRONMENT is unknown.
        """
        env = os.environ if environ is None else environ
        cloud = cloud_environment(env.get("AZURE_ENVIRONMENT", ""))
        return cls(
            cloud=cloud,
            tenant_id=env.get("AZURE_TENANT_ID", ""),
            client_id=env.get("AZURE_CLIENT_ID", ""),
            client_secret=env.get("AZURE_CLIENT_SECRET", ""),
            certificate_path=env.get("AZURE_CERTIFICATE_PATH", ""),
            certificate_password=env.get("AZURE_CERTIFICATE_PASSWORD", ""),
            subscription_id=env.get("AZURE_SUBSCRIPTION_ID", ""),
            resource=env.get("AZURE_AD_RESOURCE") or cloud.resource_manager_endpoint,
            active_directory_endpoint=env.get("AZURE_AD_ENDPOINT") or cloud.active_directory_endpoint,
            auth_location=env.get("AZURE_AUTH_LOCATION", ""),
        )

    @property
    def scope(self) -> str:
        return scope_for_resource(self.resource)

    @property
    def has_client_secret(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)

    @property
    def has_client_certificate(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.certificate_path)

    def authority_for(self, tenant_id: str) -> str:
        """Tenant-scoped token issuance URL, as recorded in the CLI token cache."""
        return self.active_directory_endpoint.strip("/") + "/" + tenant_id
