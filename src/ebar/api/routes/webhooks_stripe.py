"""Stripe webhook route - public endpoint for Stripe events.

Security rules:
- Validate Stripe-Signature on every request; unverified events are rejected.
- Never log payload or signature header.
- Once verified, always ACK 200 {"received": true}. Handler failures are
  logged, not surfaced, so Stripe does not redeliver events we already saw.
"""

from __future__ import annotations

from fastapi import APIRouter, Header, Request
from starlette.concurrency import run_in_threadpool

from ebar.domain.errors import ValidationError
from ebar.domain.webhook_events import handle_stripe_event
from ebar.infra.firestore import get_client
from ebar.infra.settings import get_webhook_secret
from ebar.observability.correlation import get_correlation_id
from ebar.observability.logging import get_logger
from ebar.observability.redaction import safe_log_context
from ebar.stripe.webhook import (
    InvalidPayloadError,
    InvalidSignatureError,
    verify_and_extract,
)

router = APIRouter(prefix="/api", tags=["webhooks"])

logger = get_logger(__name__)


def _get_db():
    """Get Firestore client (allows override in tests)."""
    return get_client()


def _get_webhook_secret() -> str:
    """Get Stripe webhook secret (allows override in tests)."""
    return get_webhook_secret()


def _id_prefix(value: str) -> str:
    return value[:12] if len(value) >= 12 else value


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
) -> dict:
    """Receive Stripe webhook events.

    Returns:
        200 {"received": true} once the signature is verified.
        400 if the signature or payload is invalid (verification text in body).
        500 if the webhook secret is not configured.
    """
    correlation_id = get_correlation_id()

    # ConfigurationError propagates to the error handler (500)
    webhook_secret = _get_webhook_secret()

    payload_bytes = await request.body()

    try:
        event = verify_and_extract(payload_bytes, stripe_signature, webhook_secret)
    except InvalidSignatureError as e:
        raise ValidationError(f"Webhook Error: {e}") from e
    except InvalidPayloadError as e:
        raise ValidationError(f"Webhook Error: {e}") from e

    # Log only safe metadata (no payload, no signature)
    logger.info(
        "stripe webhook received",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                event_id_prefix=_id_prefix(event.event_id),
                event_type=event.event_type,
            )
        },
    )

    try:
        outcome = await run_in_threadpool(handle_stripe_event, event, db=_get_db())
    except Exception:
        logger.exception(
            "stripe webhook handling failed",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    event_type=event.event_type,
                )
            },
        )
    else:
        logger.info(
            "stripe webhook handled",
            extra={
                "extra_fields": safe_log_context(
                    event_type=event.event_type,
                    outcome=outcome,
                )
            },
        )

    return {"received": True}
