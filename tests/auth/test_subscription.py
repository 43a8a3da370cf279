"""Tests for SubscriptionResolver (default subscription from the CLI profile)."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog

from blobauth.auth.subscription import SubscriptionResolver
from blobauth.contracts.errors import NoDefaultSubscriptionError, SubscriptionProfileError
from tests.fixtures.azure_cli import make_subscription

ProfileWriter = Callable[[list[dict[str, Any]]], Path]


class TestDefaultSubscription:
    """default_subscription() returns the first default-flagged entry only."""

    def test_returns_default_flagged_entry(self, write_profile: ProfileWriter, logger: structlog.stdlib.BoundLogger) -> None:
        path = write_profile(
            [
                make_subscription("sub-a", tenant_id="tenant-a", is_default=False),
                make_subscription("sub-b", tenant_id="tenant-b", is_default=True),
            ]
        )

        subscription = SubscriptionResolver(path, logger=logger).default_subscription()

        assert subscription.id == "sub-b"
        assert subscription.tenant_id == "tenant-b"
        assert subscription.is_default

    def test_first_of_several_defaults_wins(self, write_profile: ProfileWriter) -> None:
        path = write_profile(
            [
                make_subscription("sub-a", is_default=True),
                make_subscription("sub-b", is_default=True),
            ]
        )

        assert SubscriptionResolver(path).default_subscription().id == "sub-a"

    def test_no_default_is_an_error_not_first_entry(self, write_profile: ProfileWriter) -> None:
        """Without a default flag the resolver must not guess the first entry."""
        path = write_profile(
            [
                make_subscription("sub-a", is_default=False),
                make_subscription("sub-b", is_default=False),
            ]
        )

        with pytest.raises(NoDefaultSubscriptionError, match="Unable to find default azure subscription id"):
            SubscriptionResolver(path).default_subscription()

    def test_empty_profile_has_no_default(self, write_profile: ProfileWriter) -> None:
        path = write_profile([])

        with pytest.raises(NoDefaultSubscriptionError):
            SubscriptionResolver(path).default_subscription()


class TestProfileErrors:
    """Unreadable profiles raise SubscriptionProfileError."""

    def test_missing_profile(self, cli_dir: Path) -> None:
        resolver = SubscriptionResolver(cli_dir / "azureProfile.json")

        with pytest.raises(SubscriptionProfileError, match="Unable to read"):
            resolver.default_subscription()

    def test_missing_profile_is_also_no_default(self, cli_dir: Path) -> None:
        """Callers catching NoDefaultSubscriptionError also see unreadable profiles."""
        resolver = SubscriptionResolver(cli_dir / "azureProfile.json")

        with pytest.raises(NoDefaultSubscriptionError):
            resolver.default_subscription()

    def test_invalid_json(self, cli_dir: Path) -> None:
        path = cli_dir / "azureProfile.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SubscriptionProfileError, match="not valid JSON"):
            SubscriptionResolver(path).subscriptions()

    def test_subscriptions_not_a_list(self, cli_dir: Path) -> None:
        path = cli_dir / "azureProfile.json"
        path.write_text('{"subscriptions": {"id": "x"}}', encoding="utf-8")

        with pytest.raises(SubscriptionProfileError, match="no subscriptions list"):
            SubscriptionResolver(path).subscriptions()

    def test_subscriptions_in_file_order(self, write_profile: ProfileWriter) -> None:
        path = write_profile([make_subscription("one", is_default=False), make_subscription("two", is_default=False)])

        assert [s.id for s in SubscriptionResolver(path).subscriptions()] == ["one", "two"]
