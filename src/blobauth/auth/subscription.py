# src/blobauth/auth/subscription.py
"""Default subscription lookup from the Azure CLI profile store."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from blobauth.contracts.errors import NoDefaultSubscriptionError, SubscriptionProfileError
from blobauth.contracts.models import Subscription
from blobauth.core.logging import get_logger


class SubscriptionResolver:
    """Reads subscriptions from <config-dir>/azureProfile.json.

    The CLI writes the profile with a UTF-8 byte order mark, so it is read
    with utf-8-sig.
    """

    def __init__(self, path: Path, *, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._path = path
        self._logger = logger if logger is not None else get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def subscriptions(self) -> list[Subscription]:
        """Return every subscription in the profile, in file order.

        Raises:
            SubscriptionProfileError: If the profile is missing or malformed.
        """
        try:
            profile = json.loads(self._path.read_text(encoding="utf-8-sig"))
        except OSError as e:
            raise SubscriptionProfileError(f"Unable to read Azure CLI profile {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SubscriptionProfileError(f"Azure CLI profile {self._path} is not valid JSON: {e}") from e

        entries = profile.get("subscriptions", []) if isinstance(profile, dict) else None
        if not isinstance(entries, list):
            raise SubscriptionProfileError(f"Azure CLI profile {self._path} has no subscriptions list")

        return [Subscription.from_profile_entry(entry) for entry in entries if isinstance(entry, dict)]

    def default_subscription(self) -> Subscription:
        """Return the first subscription flagged as default.

        Never falls back to the first entry when none is flagged.

        Raises:
            SubscriptionProfileError: If the profile cannot be read.
            NoDefaultSubscriptionError: If no entry is flagged default.
        """
        for subscription in self.subscriptions():
            if subscription.is_default:
                self._logger.debug("using default subscription", subscription_id=subscription.id, tenant_id=subscription.tenant_id)
                return subscription

        raise NoDefaultSubscriptionError(f"Unable to find default azure subscription id in {self._path}")
