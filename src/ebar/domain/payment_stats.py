"""Owner dashboard payment statistics.

Aggregates a connected account's balance, charges of the last 30 days and
recent payouts. Stripe reports minor units; everything returned here is in
major units.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from ebar.domain.errors import MissingFieldError
from ebar.domain.fees import from_minor_units

if TYPE_CHECKING:
    from ebar.stripe.client import StripeClient

STATS_WINDOW_SECONDS = 30 * 24 * 60 * 60
RECENT_TRANSACTIONS = 10
DEFAULT_DESCRIPTION = "Beach bar booking"


def _transaction(charge: dict[str, Any]) -> dict[str, Any]:
    amount = charge.get("amount") or 0
    fee = charge.get("application_fee_amount") or 0
    billing = charge.get("billing_details") or {}
    created = charge.get("created")
    return {
        "id": charge.get("id"),
        "amount": from_minor_units(amount),
        "platformFee": from_minor_units(fee),
        "netAmount": from_minor_units(amount - fee),
        "status": charge.get("status"),
        "createdAt": (
            datetime.fromtimestamp(created, tz=timezone.utc).isoformat() if created else None
        ),
        "customerEmail": billing.get("email") or charge.get("receipt_email"),
        "description": charge.get("description") or DEFAULT_DESCRIPTION,
    }


def _balance_items(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {"amount": from_minor_units(item.get("amount")), "currency": item.get("currency")}
        for item in items
    ]


def get_payment_stats(
    *,
    stripe_client: StripeClient,
    account_id: str | None,
    now: float | None = None,
) -> dict[str, Any]:
    """Compute earnings, fees and payouts for a connected account.

    Args:
        stripe_client: Stripe client instance.
        account_id: Connected account ID.
        now: Current UNIX time (defaults to time.time()).

    Returns:
        Dict with totals, recent transactions and balance.
    """
    if not account_id:
        raise MissingFieldError("Account ID required")

    now = time.time() if now is None else now
    since = int(now) - STATS_WINDOW_SECONDS

    balance = stripe_client.retrieve_balance(account_id)
    charges = stripe_client.list_charges(account_id, created_gte=since)
    payouts = stripe_client.list_payouts(account_id)

    total_earnings = sum((from_minor_units(c.get("amount")) for c in charges), Decimal(0))
    platform_fees = sum(
        (from_minor_units(c.get("application_fee_amount")) for c in charges), Decimal(0)
    )
    pending_payouts = sum(
        (from_minor_units(item.get("amount")) for item in balance["available"]), Decimal(0)
    )
    completed_payouts = sum(
        (from_minor_units(p.get("amount")) for p in payouts if p.get("status") == "paid"),
        Decimal(0),
    )

    return {
        "totalEarnings": total_earnings,
        "platformFees": platform_fees,
        "netEarnings": total_earnings - platform_fees,
        "pendingPayouts": pending_payouts,
        "completedPayouts": completed_payouts,
        "recentTransactions": [_transaction(c) for c in charges[:RECENT_TRANSACTIONS]],
        "balance": {
            "available": _balance_items(balance["available"]),
            "pending": _balance_items(balance["pending"]),
        },
    }
