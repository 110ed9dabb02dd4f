"""Dispatch of verified Stripe webhook events.

Only account events change stored state: account.updated reconciles the bar
status from the flags carried in the event, and a deauthorized application
unlinks the bar. Payment events are logged with their Connect split so
payouts can be audited from the logs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from ebar.domain.account_status import CapabilityFlags, apply_capability_flags
from ebar.domain.errors import BarNotFoundError
from ebar.infra.repositories.bars_repository import (
    find_bar_by_connect_account,
    unlink_connect_account,
)
from ebar.observability.redaction import safe_log_context

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from ebar.stripe.webhook import StripeWebhookEvent

logger = logging.getLogger(__name__)


def _handle_account_updated(event: StripeWebhookEvent, db: FirestoreClient) -> str:
    account_id = event.object_id or event.account_id
    if not account_id:
        return "ignored"
    try:
        apply_capability_flags(
            db=db,
            connect_account_id=account_id,
            flags=CapabilityFlags.from_account(event.data_object),
        )
    except BarNotFoundError:
        # Accounts can exist before being linked to a bar.
        logger.info(
            "account.updated for unlinked account",
            extra={"extra_fields": safe_log_context(connect_account_id=account_id)},
        )
        return "unlinked"
    return "updated"


def _handle_account_deauthorized(event: StripeWebhookEvent, db: FirestoreClient) -> str:
    account_id = event.account_id
    if not account_id:
        return "ignored"
    bar = find_bar_by_connect_account(db, account_id)
    if bar is None:
        return "unlinked"
    unlink_connect_account(db, bar["id"])
    logger.info(
        "bar unlinked after deauthorization",
        extra={"extra_fields": safe_log_context(bar_id=bar["id"], connect_account_id=account_id)},
    )
    return "updated"


def _log_payment_intent(event: StripeWebhookEvent, db: FirestoreClient) -> str:
    intent = event.data_object
    transfer_data = intent.get("transfer_data") or {}
    metadata = intent.get("metadata") or {}
    logger.info(
        "payment intent event",
        extra={
            "extra_fields": safe_log_context(
                event_type=event.event_type,
                payment_intent_id=intent.get("id"),
                connect=bool(transfer_data),
                destination_account=transfer_data.get("destination"),
                application_fee_amount=intent.get("application_fee_amount"),
                bar_id=metadata.get("barId"),
                owner_id=metadata.get("ownerId"),
            )
        },
    )
    return "logged"


_HANDLERS: dict[str, Callable[[Any, Any], str]] = {
    "account.updated": _handle_account_updated,
    "account.application.deauthorized": _handle_account_deauthorized,
    "payment_intent.succeeded": _log_payment_intent,
    "payment_intent.payment_failed": _log_payment_intent,
}


def handle_stripe_event(event: StripeWebhookEvent, *, db: FirestoreClient) -> str:
    """Apply a verified event.

    Returns:
        Outcome label: "updated", "unlinked", "logged", "ignored" or "unhandled".
    """
    handler = _HANDLERS.get(event.event_type)
    if handler is None:
        logger.info(
            "unhandled stripe event type",
            extra={"extra_fields": safe_log_context(event_type=event.event_type)},
        )
        return "unhandled"
    return handler(event, db)
