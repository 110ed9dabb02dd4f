"""Tests for owner payment statistics."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from ebar.domain.errors import MissingFieldError
from ebar.domain.payment_stats import STATS_WINDOW_SECONDS, get_payment_stats

NOW = 1_750_000_000


def _stripe_client(charges=None, payouts=None, available=None, pending=None):
    client = MagicMock()
    client.retrieve_balance.return_value = {
        "available": available if available is not None else [],
        "pending": pending if pending is not None else [],
    }
    client.list_charges.return_value = charges or []
    client.list_payouts.return_value = payouts or []
    return client


def _charge(charge_id, amount, fee, **extra):
    return {
        "id": charge_id,
        "amount": amount,
        "application_fee_amount": fee,
        "status": "succeeded",
        "created": NOW - 3600,
        **extra,
    }


class TestGetPaymentStats:
    def test_requires_account_id(self):
        with pytest.raises(MissingFieldError):
            get_payment_stats(stripe_client=_stripe_client(), account_id=None)

    def test_empty_account(self):
        stats = get_payment_stats(stripe_client=_stripe_client(), account_id="acct_1", now=NOW)

        assert stats["totalEarnings"] == Decimal(0)
        assert stats["netEarnings"] == Decimal(0)
        assert stats["recentTransactions"] == []
        assert stats["balance"] == {"available": [], "pending": []}

    def test_totals(self):
        client = _stripe_client(
            charges=[_charge("ch_1", 10000, 300), _charge("ch_2", 2500, 100)],
            payouts=[{"amount": 4000, "status": "paid"}, {"amount": 999, "status": "in_transit"}],
            available=[{"amount": 8100, "currency": "usd"}],
            pending=[{"amount": 1000, "currency": "usd"}],
        )

        stats = get_payment_stats(stripe_client=client, account_id="acct_1", now=NOW)

        assert stats["totalEarnings"] == Decimal("125")
        assert stats["platformFees"] == Decimal("4")
        assert stats["netEarnings"] == Decimal("121")
        assert stats["pendingPayouts"] == Decimal("81")
        assert stats["completedPayouts"] == Decimal("40")
        assert stats["balance"]["pending"] == [{"amount": Decimal("10"), "currency": "usd"}]

    def test_queries_last_30_days(self):
        client = _stripe_client()
        get_payment_stats(stripe_client=client, account_id="acct_1", now=NOW)

        client.list_charges.assert_called_once_with(
            "acct_1", created_gte=NOW - STATS_WINDOW_SECONDS
        )

    def test_recent_transactions_capped_at_ten(self):
        charges = [_charge(f"ch_{i}", 1000, 30) for i in range(15)]
        stats = get_payment_stats(
            stripe_client=_stripe_client(charges=charges), account_id="acct_1", now=NOW
        )

        assert len(stats["recentTransactions"]) == 10
        assert stats["totalEarnings"] == Decimal("150")

    def test_transaction_shape(self):
        charge = _charge(
            "ch_1", 1999, 100, billing_details={"email": "guest@example.com"}
        )
        stats = get_payment_stats(
            stripe_client=_stripe_client(charges=[charge]), account_id="acct_1", now=NOW
        )

        tx = stats["recentTransactions"][0]
        assert tx["amount"] == Decimal("19.99")
        assert tx["platformFee"] == Decimal("1")
        assert tx["netAmount"] == Decimal("18.99")
        assert tx["customerEmail"] == "guest@example.com"
        assert tx["description"] == "Beach bar booking"
        assert tx["createdAt"].endswith("+00:00")

    def test_missing_fee_counts_as_zero(self):
        charge = _charge("ch_1", 500, None)
        stats = get_payment_stats(
            stripe_client=_stripe_client(charges=[charge]), account_id="acct_1", now=NOW
        )
        assert stats["platformFees"] == Decimal(0)
        assert stats["netEarnings"] == Decimal("5")
