# tests/conftest.py
"""Shared test fixtures.

Fake Azure CLI state:
- cli_dir: an empty config directory standing in for ~/.azure
- write_profile: writes azureProfile.json (with the CLI's UTF-8 BOM)
- write_access_tokens: writes accessTokens.json
- logger: a bound structlog logger for injection

Entry builders and fake credentials live in tests/fixtures/azure_cli.py.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from blobauth.core.logging import get_logger


@pytest.fixture
def cli_dir(tmp_path: Path) -> Path:
    """Empty Azure CLI config directory."""
    directory = tmp_path / ".azure"
    directory.mkdir()
    return directory


@pytest.fixture
def write_profile(cli_dir: Path) -> Callable[[list[dict[str, Any]]], Path]:
    """Write azureProfile.json with the given subscription entries."""

    def _write(subscriptions: list[dict[str, Any]]) -> Path:
        path = cli_dir / "azureProfile.json"
        # The CLI writes a UTF-8 byte order mark
        path.write_text(json.dumps({"installationId": "x", "subscriptions": subscriptions}), encoding="utf-8-sig")
        return path

    return _write


@pytest.fixture
def write_access_tokens(cli_dir: Path) -> Callable[[list[dict[str, Any]]], Path]:
    """Write accessTokens.json with the given entries."""

    def _write(entries: list[dict[str, Any]]) -> Path:
        path = cli_dir / "accessTokens.json"
        path.write_text(json.dumps(entries), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def logger() -> structlog.stdlib.BoundLogger:
    return get_logger("tests")


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
