"""Tests for cloud environments, EnvironmentSettings and CLI paths."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from blobauth.contracts.errors import CloudEnvironmentError
from blobauth.core.environment import (
    CHINA_CLOUD,
    PUBLIC_CLOUD,
    US_GOVERNMENT_CLOUD,
    EnvironmentSettings,
    cloud_environment,
    scope_for_resource,
)
from blobauth.core.paths import access_tokens_path, config_dir, profile_path, storage_config_path


class TestCloudEnvironment:
    def test_empty_name_is_public_cloud(self) -> None:
        assert cloud_environment("") is PUBLIC_CLOUD

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("AzureChinaCloud", CHINA_CLOUD), ("azureusgovernmentcloud", US_GOVERNMENT_CLOUD), (" AzurePublicCloud ", PUBLIC_CLOUD)],
    )
    def test_lookup_is_case_insensitive(self, name: str, expected: object) -> None:
        assert cloud_environment(name) is expected

    def test_unknown_cloud(self) -> None:
        with pytest.raises(CloudEnvironmentError, match="AzureMoonCloud"):
            cloud_environment("AzureMoonCloud")

    def test_clouds_are_immutable(self) -> None:
        with pytest.raises(ValidationError):
            PUBLIC_CLOUD.storage_endpoint_suffix = "example.com"  # type: ignore[misc]


class TestScopeForResource:
    @pytest.mark.parametrize(
        ("resource", "scope"),
        [
            ("https://management.core.windows.net/", "https://management.core.windows.net/.default"),
            ("https://storage.azure.com", "https://storage.azure.com/.default"),
            ("https://datalake.azure.net//", "https://datalake.azure.net/.default"),
            ("https://vault.azure.net/.default", "https://vault.azure.net/.default"),
        ],
    )
    def test_scope(self, resource: str, scope: str) -> None:
        assert scope_for_resource(resource) == scope


class TestEnvironmentSettings:
    def test_defaults(self) -> None:
        settings = EnvironmentSettings.from_environ({})

        assert settings.cloud is PUBLIC_CLOUD
        assert settings.resource == "https://management.azure.com/"
        assert settings.scope == "https://management.azure.com/.default"
        assert not settings.has_client_secret
        assert not settings.has_client_certificate
        assert settings.authority_for("tenant-1") == "https://login.microsoftonline.com/tenant-1"

    def test_reads_service_principal_variables(self) -> None:
        settings = EnvironmentSettings.from_environ(
            {
                "AZURE_TENANT_ID": "t",
                "AZURE_CLIENT_ID": "c",
                "AZURE_CLIENT_SECRET": "s",
                "AZURE_CERTIFICATE_PATH": "/etc/sp.pem",
                "AZURE_SUBSCRIPTION_ID": "sub",
                "AZURE_AUTH_LOCATION": "/etc/sp.json",
            }
        )

        assert settings.has_client_secret
        assert settings.has_client_certificate
        assert settings.subscription_id == "sub"
        assert settings.auth_location == "/etc/sp.json"

    def test_secret_needs_tenant_and_client(self) -> None:
        assert not EnvironmentSettings.from_environ({"AZURE_CLIENT_SECRET": "s"}).has_client_secret

    def test_cloud_selects_endpoints(self) -> None:
        settings = EnvironmentSettings.from_environ({"AZURE_ENVIRONMENT": "AzureChinaCloud"})

        assert settings.resource == "https://management.chinacloudapi.cn/"
        assert settings.authority_for("t") == "https://login.chinacloudapi.cn/t"

    def test_explicit_overrides_win_over_cloud(self) -> None:
        settings = EnvironmentSettings.from_environ(
            {
                "AZURE_ENVIRONMENT": "AzureChinaCloud",
                "AZURE_AD_RESOURCE": "https://storage.azure.com/",
                "AZURE_AD_ENDPOINT": "https://login.example.test",
            }
        )

        assert settings.scope == "https://storage.azure.com/.default"
        assert settings.authority_for("t") == "https://login.example.test/t"

    def test_unknown_cloud_rejected(self) -> None:
        with pytest.raises(CloudEnvironmentError):
            EnvironmentSettings.from_environ({"AZURE_ENVIRONMENT": "nope"})

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AZURE_TENANT_ID", "from-os")
        monkeypatch.delenv("AZURE_ENVIRONMENT", raising=False)

        assert EnvironmentSettings.from_environ().tenant_id == "from-os"

    def test_unknown_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            EnvironmentSettings(tenant="typo")  # type: ignore[call-arg]


class TestConfigDir:
    def test_override(self, tmp_path: Path) -> None:
        directory = config_dir({"AZURE_CONFIG_DIR": str(tmp_path)})

        assert directory == tmp_path
        assert profile_path(directory) == tmp_path / "azureProfile.json"
        assert access_tokens_path(directory) == tmp_path / "accessTokens.json"
        assert storage_config_path(directory) == tmp_path / "config"

    def test_default_is_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        assert config_dir({}) == tmp_path / ".azure"
