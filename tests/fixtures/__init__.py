# tests/fixtures/__init__.py
"""Shared test helpers for blobauth tests.

Available helpers:
- FakeCredential: recording fake TokenCredential
- make_token_entry / make_subscription: fake Azure CLI file entries
"""

from tests.fixtures.azure_cli import FakeCredential, expires_on, make_subscription, make_token_entry

__all__ = [
    "FakeCredential",
    "expires_on",
    "make_subscription",
    "make_token_entry",
]
