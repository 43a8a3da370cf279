"""Tests for client credential construction and SDK auth files."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from azure.identity import ClientSecretCredential

from blobauth.auth.service_principal import (
    AuthFileSettings,
    build_client_credential,
    environment_client_credential,
    load_auth_file,
)
from blobauth.contracts.errors import SettingsFileError
from blobauth.core.environment import EnvironmentSettings
from tests.fixtures.azure_cli import TEST_CLIENT_ID, TEST_TENANT_ID

AUTH_FILE = {
    "clientId": TEST_CLIENT_ID,
    "clientSecret": "s3cret",
    "subscriptionId": "sub-1",
    "tenantId": TEST_TENANT_ID,
    "activeDirectoryEndpointUrl": "https://login.microsoftonline.com",
    "resourceManagerEndpointUrl": "https://management.azure.com/",
    "sqlManagementEndpointUrl": "https://management.core.windows.net:8443/",
}


class TestBuildClientCredential:
    """Secret and certificate credentials."""

    def test_client_secret(self) -> None:
        credential = build_client_credential(tenant_id=TEST_TENANT_ID, client_id=TEST_CLIENT_ID, client_secret="s3cret")

        assert isinstance(credential, ClientSecretCredential)

    def test_secret_wins_over_certificate(self) -> None:
        credential = build_client_credential(
            tenant_id=TEST_TENANT_ID,
            client_id=TEST_CLIENT_ID,
            client_secret="s3cret",
            certificate_path="/nonexistent/cert.pem",
        )

        assert isinstance(credential, ClientSecretCredential)

    def test_certificate(self) -> None:
        with patch("azure.identity.CertificateCredential", autospec=True) as certificate_cls:
            build_client_credential(
                tenant_id=TEST_TENANT_ID,
                client_id=TEST_CLIENT_ID,
                certificate_path="/etc/sp.pem",
                certificate_password="pw",
                authority="https://login.microsoftonline.us/",
            )

        certificate_cls.assert_called_once_with(
            tenant_id=TEST_TENANT_ID,
            client_id=TEST_CLIENT_ID,
            certificate_path="/etc/sp.pem",
            password="pw",
            authority="https://login.microsoftonline.us",
        )

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"tenant_id": "", "client_id": TEST_CLIENT_ID, "client_secret": "s"},
            {"tenant_id": TEST_TENANT_ID, "client_id": "", "client_secret": "s"},
            {"tenant_id": TEST_TENANT_ID, "client_id": TEST_CLIENT_ID},
        ],
        ids=["no-tenant", "no-client", "no-secret-or-cert"],
    )
    def test_incomplete_credentials(self, kwargs: dict[str, str]) -> None:
        with pytest.raises(ValueError, match="Client credentials require"):
            build_client_credential(**kwargs)

    def test_from_environment_settings(self) -> None:
        settings = EnvironmentSettings.from_environ(
            {"AZURE_TENANT_ID": TEST_TENANT_ID, "AZURE_CLIENT_ID": TEST_CLIENT_ID, "AZURE_CLIENT_SECRET": "s3cret"}
        )

        assert isinstance(environment_client_credential(settings), ClientSecretCredential)


class TestAuthFile:
    """SDK auth files written by `az ad sp create-for-rbac --sdk-auth`."""

    def test_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / "sp.json"
        path.write_text(json.dumps(AUTH_FILE), encoding="utf-8")

        settings = load_auth_file(path)

        assert settings.client_id == TEST_CLIENT_ID
        assert settings.tenant_id == TEST_TENANT_ID
        assert settings.subscription_id == "sub-1"
        assert isinstance(settings.credential(), ClientSecretCredential)

    def test_utf16_file(self, tmp_path: Path) -> None:
        """PowerShell redirection writes UTF-16 with a byte order mark."""
        path = tmp_path / "sp.json"
        path.write_text(json.dumps(AUTH_FILE), encoding="utf-16")

        assert load_auth_file(path).client_secret == "s3cret"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SettingsFileError, match="Unable to read auth file"):
            load_auth_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "sp.json"
        path.write_text("clientId=abc", encoding="utf-8")

        with pytest.raises(SettingsFileError, match="not valid JSON"):
            load_auth_file(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "sp.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(SettingsFileError, match="not a valid SDK auth file"):
            load_auth_file(path)

    def test_error_does_not_leak_secret(self, tmp_path: Path) -> None:
        path = tmp_path / "sp.json"
        path.write_text('{"clientSecret": "leaky", ', encoding="utf-8")

        with pytest.raises(SettingsFileError) as exc_info:
            load_auth_file(path)

        assert "leaky" not in str(exc_info.value)

    def test_file_without_secret_cannot_build_credential(self) -> None:
        settings = AuthFileSettings(client_id=TEST_CLIENT_ID, tenant_id=TEST_TENANT_ID)

        with pytest.raises(ValueError, match="client secret or a client certificate"):
            settings.credential()
