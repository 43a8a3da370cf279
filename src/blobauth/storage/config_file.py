# src/blobauth/storage/config_file.py
"""Storage settings from the Azure CLI ini config file.

<config-dir>/config may carry a storage section:

    [storage]
    account = mystorageaccount
    key = base64key==

A missing or unparsable file is the same as an empty one.
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from blobauth.core.logging import get_logger

STORAGE_SECTION = "storage"


@dataclass(frozen=True, slots=True)
class StorageFileSettings:
    account: str = ""
    key: str = field(default="", repr=False)


def read_storage_settings(path: Path, *, logger: structlog.stdlib.BoundLogger | None = None) -> StorageFileSettings:
    """Read the storage section of an ini config file."""
    log = logger if logger is not None else get_logger(__name__)
    parser = configparser.ConfigParser(interpolation=None)
    try:
        found = parser.read(path, encoding="utf-8-sig")
    except (configparser.Error, UnicodeDecodeError) as e:
        log.debug("ignoring unparsable azure config", path=str(path), error=str(e))
        return StorageFileSettings()

    if not found or not parser.has_section(STORAGE_SECTION):
        return StorageFileSettings()

    section = parser[STORAGE_SECTION]
    return StorageFileSettings(account=section.get("account", ""), key=section.get("key", ""))
