"""Stripe webhook signature validation and payload parsing.

Purpose:
- Validate webhook signature using Stripe-Signature header.
- Extract the data needed for dispatch (event type, object, Connect account).
- Never log payload or signature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import stripe

logger = logging.getLogger(__name__)


class InvalidSignatureError(Exception):
    """Webhook signature validation failed."""


class InvalidPayloadError(Exception):
    """Payload structure is invalid or missing required fields."""


@dataclass
class StripeWebhookEvent:
    """Data extracted from a verified Stripe webhook event."""

    event_id: str
    event_type: str
    object_id: str | None  # e.g., payment_intent.id, account.id
    account_id: str | None = None  # Connect account the event originated from
    data_object: dict[str, Any] = field(default_factory=dict)


def verify_and_extract(
    payload_bytes: bytes,
    signature_header: str | None,
    webhook_secret: str,
) -> StripeWebhookEvent:
    """Validate Stripe webhook signature and extract event data.

    Args:
        payload_bytes: Raw request body bytes.
        signature_header: Value of Stripe-Signature header.
        webhook_secret: Webhook endpoint secret from Stripe.

    Returns:
        StripeWebhookEvent for dispatch.

    Raises:
        InvalidSignatureError: If signature validation fails. The message is
            the verification error text from the SDK.
        InvalidPayloadError: If event structure is invalid.
    """
    if not signature_header:
        raise InvalidSignatureError("No signatures found matching the expected signature for payload")

    try:
        event = stripe.Webhook.construct_event(
            payload_bytes,
            signature_header,
            webhook_secret,
        )
    except stripe.SignatureVerificationError as e:
        # Do NOT log signature or payload
        logger.warning("stripe webhook signature verification failed")
        raise InvalidSignatureError(str(e.user_message or e)) from e
    except ValueError as e:
        logger.warning("stripe webhook payload parsing failed")
        raise InvalidPayloadError("Invalid payload") from e

    event = event.to_dict()
    event_id = event.get("id")
    event_type = event.get("type")

    if not event_id or not event_type:
        raise InvalidPayloadError("Missing event id or type")

    data_object = _extract_data_object(event)

    return StripeWebhookEvent(
        event_id=event_id,
        event_type=event_type,
        object_id=data_object.get("id"),
        account_id=event.get("account"),
        data_object=data_object,
    )


def _extract_data_object(event: dict[str, Any]) -> dict[str, Any]:
    """Return event.data.object, or {} when absent."""
    data = event.get("data") or {}
    return data.get("object") or {}
