# src/blobauth/auth/service_principal.py
"""Service principal (client credential) sources.

Two sources feed the same credential builder:

1. The standard environment variables, via EnvironmentSettings.
2. An SDK auth file named by AZURE_AUTH_LOCATION, as written by
   `az ad sp create-for-rbac --sdk-auth`:

        {
            "clientId": "...",
            "clientSecret": "...",
            "subscriptionId": "...",
            "tenantId": "...",
            "activeDirectoryEndpointUrl": "https://login.microsoftonline.com",
            "resourceManagerEndpointUrl": "https://management.azure.com/"
        }

   The file may be UTF-16 (PowerShell redirection) or UTF-8.

IMPORTANT: secrets are never logged; errors name the file and field only.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from blobauth.contracts.errors import SettingsFileError
from blobauth.core.environment import EnvironmentSettings

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential


def build_client_credential(
    *,
    tenant_id: str,
    client_id: str,
    client_secret: str = "",
    certificate_path: str = "",
    certificate_password: str = "",
    authority: str = "",
) -> TokenCredential:
    """Create a client secret or client certificate credential.

    A client secret wins over a certificate when both are present.

    Raises:
        ValueError: If tenant or client id is missing, neither secret nor
            certificate is given, or azure-identity rejects the values.
    """
    if not tenant_id or not client_id:
        raise ValueError("Client credentials require both a tenant id and a client id")

    kwargs: dict[str, str] = {}
    if authority:
        kwargs["authority"] = authority.rstrip("/")

    if client_secret:
        from azure.identity import ClientSecretCredential

        return ClientSecretCredential(tenant_id=tenant_id, client_id=client_id, client_secret=client_secret, **kwargs)

    if certificate_path:
        from azure.identity import CertificateCredential

        return CertificateCredential(
            tenant_id=tenant_id,
            client_id=client_id,
            certificate_path=certificate_path,
            password=certificate_password or None,
            **kwargs,
        )

    raise ValueError("Client credentials require a client secret or a client certificate")


def environment_client_credential(settings: EnvironmentSettings) -> TokenCredential:
    """Client credential from AZURE_TENANT_ID / AZURE_CLIENT_ID / secret or certificate."""
    return build_client_credential(
        tenant_id=settings.tenant_id,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        certificate_path=settings.certificate_path,
        certificate_password=settings.certificate_password,
        authority=settings.active_directory_endpoint,
    )


class AuthFileSettings(BaseModel):
    """Contents of an SDK auth file. Unknown keys are ignored."""

    model_config = {"extra": "ignore", "frozen": True, "populate_by_name": True}

    client_id: str = Field(default="", alias="clientId")
    client_secret: str = Field(default="", alias="clientSecret")
    client_certificate: str = Field(default="", alias="clientCertificate")
    client_certificate_password: str = Field(default="", alias="clientCertificatePassword")
    subscription_id: str = Field(default="", alias="subscriptionId")
    tenant_id: str = Field(default="", alias="tenantId")
    active_directory_endpoint_url: str = Field(default="", alias="activeDirectoryEndpointUrl")
    resource_manager_endpoint_url: str = Field(default="", alias="resourceManagerEndpointUrl")

    def credential(self) -> TokenCredential:
        """Build the client credential described by this file.

        Raises:
            ValueError: If the file lacks the fields needed for a credential.
        """
        return build_client_credential(
            tenant_id=self.tenant_id,
            client_id=self.client_id,
            client_secret=self.client_secret,
            certificate_path=self.client_certificate,
            certificate_password=self.client_certificate_password,
            authority=self.active_directory_endpoint_url,
        )


def _decode(raw: bytes) -> str:
    if raw.startswith((b"\xff\xfe", b"\xfe\xff")):
        return raw.decode("utf-16")
    return raw.decode("utf-8-sig")


def load_auth_file(path: Path) -> AuthFileSettings:
    """Read and validate an SDK auth file.

    Raises:
        SettingsFileError: If the file is missing, undecodable, not JSON or
            not a JSON object.
    """
    try:
        text = _decode(path.read_bytes())
    except OSError as e:
        raise SettingsFileError(f"Unable to read auth file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise SettingsFileError(f"Auth file {path} is neither UTF-8 nor UTF-16: {e}") from e

    try:
        return AuthFileSettings.model_validate(json.loads(text))
    except json.JSONDecodeError as e:
        raise SettingsFileError(f"Auth file {path} is not valid JSON: {e}") from e
    except ValidationError as e:
        raise SettingsFileError(f"Auth file {path} is not a valid SDK auth file: {e}") from e
