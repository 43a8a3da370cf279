# src/blobauth/core/paths.py
"""Locations of the Azure CLI's local state.

All files live in the CLI config directory: AZURE_CONFIG_DIR when set,
otherwise ~/.azure.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

DEFAULT_CONFIG_DIR = "~/.azure"

PROFILE_FILE = "azureProfile.json"
ACCESS_TOKENS_FILE = "accessTokens.json"
STORAGE_CONFIG_FILE = "config"


def config_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the Azure CLI config directory."""
    env = os.environ if environ is None else environ
    override = env.get("AZURE_CONFIG_DIR", "")
    if override:
        return Path(override).expanduser()
    return Path(DEFAULT_CONFIG_DIR).expanduser()


def profile_path(directory: Path) -> Path:
    return directory / PROFILE_FILE


def access_tokens_path(directory: Path) -> Path:
    return directory / ACCESS_TOKENS_FILE


def storage_config_path(directory: Path) -> Path:
    return directory / STORAGE_CONFIG_FILE
