"""Shared test helper functions for eBar payments tests.

These are NOT fixtures - they are regular functions importable by tests.
"""

from __future__ import annotations

from unittest.mock import MagicMock


def make_account(
    account_id: str = "acct_test_123",
    *,
    charges_enabled: bool = True,
    payouts_enabled: bool = True,
    details_submitted: bool = True,
    requirements: dict | None = None,
) -> dict:
    """Build a Stripe account payload as returned by StripeClient.retrieve_account."""
    return {
        "id": account_id,
        "charges_enabled": charges_enabled,
        "payouts_enabled": payouts_enabled,
        "details_submitted": details_submitted,
        "business_profile": {"name": "Sunset Beach Bar"},
        "requirements": requirements
        if requirements is not None
        else {
            "currently_due": [],
            "eventually_due": [],
            "past_due": [],
            "pending_verification": [],
            "disabled_reason": None,
        },
    }


def make_stripe_client(account: dict | None = None) -> MagicMock:
    """Mock StripeClient with a ready destination account and a created intent."""
    client = MagicMock()
    client.retrieve_account.return_value = account or make_account()
    client.create_payment_intent.return_value = {
        "payment_intent_id": "pi_test_123",
        "client_secret": "pi_test_123_secret_abc",
        "status": "requires_payment_method",
    }
    return client


def stripe_object(resource, values: dict):
    """Build a real SDK object (attribute access, no dict methods) from values."""
    return resource.construct_from(values, "sk_test_x")
