"""Storage account and blob configuration resolution.

Typical use:
    from blobauth.storage import BlobConfigResolver

    config = BlobConfigResolver().resolve(path_hint="container@acct.blob.core.windows.net/prefix")
    client = config.create_blob_service_client()
"""

from blobauth.storage.accounts import AccountResolver, resource_group_from_id, select_account_key
from blobauth.storage.adl import resolve_adlv1_config
from blobauth.storage.blob_config import (
    EMULATOR_ENDPOINT,
    BlobConfigBuilder,
    BlobConfigResolver,
    PathHint,
    account_from_endpoint,
    parse_path_hint,
)
from blobauth.storage.config_file import StorageFileSettings, read_storage_settings
from blobauth.storage.connection_string import StorageConnectionString

__all__ = [
    "EMULATOR_ENDPOINT",
    "AccountResolver",
    "BlobConfigBuilder",
    "BlobConfigResolver",
    "PathHint",
    "StorageConnectionString",
    "StorageFileSettings",
    "account_from_endpoint",
    "parse_path_hint",
    "read_storage_settings",
    "resolve_adlv1_config",
    "resource_group_from_id",
    "select_account_key",
]
