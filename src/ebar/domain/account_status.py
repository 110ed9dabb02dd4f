"""Connect account status reconciliation.

Maps the capability flags Stripe reports for a Connect account onto the
three-valued status stored on the bar, and persists it.

Decision table (first match wins):
- charges_enabled and payouts_enabled  -> active
- details_submitted                    -> restricted
- otherwise                            -> pending

"restricted" covers both partially enabled accounts and fully submitted
accounts still under review.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from ebar.domain.errors import BarNotFoundError
from ebar.infra.repositories.bars_repository import (
    find_bar_by_connect_account,
    get_bar,
    unlink_connect_account,
    update_connect_status,
)
from ebar.observability.redaction import safe_log_context
from ebar.stripe.client import StripeAccountMissingError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from ebar.stripe.client import StripeClient

logger = logging.getLogger(__name__)


class ConnectStatus(str, Enum):
    PENDING = "pending"
    RESTRICTED = "restricted"
    ACTIVE = "active"


@dataclass(frozen=True)
class CapabilityFlags:
    """Capability flags of a Connect account at query time."""

    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False

    @classmethod
    def from_account(cls, account: Mapping[str, Any]) -> CapabilityFlags:
        """Build flags from a Stripe account object (snake_case fields)."""
        return cls(
            charges_enabled=bool(account.get("charges_enabled")),
            payouts_enabled=bool(account.get("payouts_enabled")),
            details_submitted=bool(account.get("details_submitted")),
        )


def reconcile_status(flags: CapabilityFlags) -> ConnectStatus:
    """Derive the bar's Connect status from capability flags."""
    if flags.charges_enabled and flags.payouts_enabled:
        return ConnectStatus.ACTIVE
    if flags.details_submitted:
        return ConnectStatus.RESTRICTED
    return ConnectStatus.PENDING


def apply_capability_flags(
    *,
    db: FirestoreClient,
    connect_account_id: str,
    flags: CapabilityFlags,
) -> dict[str, Any]:
    """Reconcile and persist the status of the bar owning connect_account_id.

    Args:
        db: Firestore client.
        connect_account_id: Stripe account ID stored on the bar.
        flags: Freshly observed capability flags.

    Returns:
        Dict with bar_id, connect_account_status and payment_setup_complete.

    Raises:
        BarNotFoundError: If no bar references the account.
    """
    bar = find_bar_by_connect_account(db, connect_account_id)
    if bar is None:
        logger.info(
            "no bar found for connect account",
            extra={"extra_fields": safe_log_context(connect_account_id=connect_account_id)},
        )
        raise BarNotFoundError()

    status = reconcile_status(flags)
    update_connect_status(db, bar["id"], status)

    logger.info(
        "bar connect status updated",
        extra={
            "extra_fields": safe_log_context(
                bar_id=bar["id"],
                connect_account_id=connect_account_id,
                previous_status=bar.get("connectAccountStatus"),
                connect_account_status=status.value,
                charges_enabled=flags.charges_enabled,
                payouts_enabled=flags.payouts_enabled,
            )
        },
    )

    return {
        "bar_id": bar["id"],
        "connect_account_status": status,
        "payment_setup_complete": status is ConnectStatus.ACTIVE,
    }


def sync_bar_connect_status(
    *,
    db: FirestoreClient,
    stripe_client: StripeClient,
    bar_id: str,
) -> dict[str, Any]:
    """Re-fetch a bar's Connect account and persist the reconciled status.

    Recovery path for the non-transactional disconnect: a bar still pointing
    at an account Stripe no longer knows is unlinked and reported as pending.

    Raises:
        BarNotFoundError: If the bar does not exist.
    """
    bar = get_bar(db, bar_id)
    if bar is None:
        raise BarNotFoundError()

    account_id = bar.get("connectAccountId")
    if not account_id:
        return {
            "bar_id": bar_id,
            "connect_account_id": None,
            "connect_account_status": ConnectStatus.PENDING,
            "payment_setup_complete": False,
        }

    try:
        account = stripe_client.retrieve_account(account_id)
    except StripeAccountMissingError:
        logger.warning(
            "connect account no longer exists, unlinking bar",
            extra={"extra_fields": safe_log_context(bar_id=bar_id, connect_account_id=account_id)},
        )
        unlink_connect_account(db, bar_id)
        return {
            "bar_id": bar_id,
            "connect_account_id": None,
            "connect_account_status": ConnectStatus.PENDING,
            "payment_setup_complete": False,
        }

    status = reconcile_status(CapabilityFlags.from_account(account))
    update_connect_status(db, bar_id, status)

    return {
        "bar_id": bar_id,
        "connect_account_id": account_id,
        "connect_account_status": status,
        "payment_setup_complete": status is ConnectStatus.ACTIVE,
    }
