"""Payment intent creation.

Two structurally distinct paths, selected by an explicit discriminant:

- connect: a destination charge. The platform fee is split off, the bar
  owner's Connect account is the settlement merchant and receives the rest.
- standard: a plain charge to the platform, no fee and no transfer.

A missing discriminant selects standard. confirm_payment checks, after the
client-side flow, that an intent actually succeeded.

No automatic retries: a caller may pass an idempotency key to make its own
retries safe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Literal, Mapping

from ebar.domain.errors import (
    DestinationNotReadyError,
    MissingDestinationError,
    MissingFieldError,
    PaymentConfirmationFailedError,
    PaymentIntentCreationFailedError,
    PaymentIntentNotFoundError,
    PaymentNotCompletedError,
)
from ebar.domain.fees import (
    PLATFORM_FEE_RATE,
    Numeric,
    compute_split,
    format_amount,
    require_positive,
    to_minor_units,
)
from ebar.observability.redaction import safe_log_context
from ebar.stripe.client import StripeAccountMissingError, StripeCallError

if TYPE_CHECKING:
    from ebar.stripe.client import StripeClient

logger = logging.getLogger(__name__)

PaymentType = Literal["standard", "connect"]

DEFAULT_CURRENCY = "usd"
SUCCEEDED = "succeeded"

_CONNECT_TYPE_NEEDS_DESTINATION = "Connect account ID required for connect payments"


@dataclass(frozen=True)
class PaymentIntentResult:
    """Processor handle returned to the client. Not persisted here."""

    client_secret: str
    payment_intent_id: str
    type: PaymentType
    platform_fee: Decimal | None = None
    owner_amount: Decimal | None = None


def _build_metadata(metadata: Mapping[str, Any] | None, **extra: Any) -> dict[str, str]:
    """Merge caller metadata with our fields; drop None, stringify the rest."""
    merged = {**(metadata or {}), **extra}
    return {str(k): str(v) for k, v in merged.items() if v is not None}


def _ensure_destination_ready(stripe_client: StripeClient, connect_account_id: str) -> None:
    """Fetch the destination account fresh and require charges_enabled.

    A destination Stripe no longer knows (bar left linked after a disconnect)
    is treated as not ready.
    """
    try:
        account = stripe_client.retrieve_account(connect_account_id)
    except StripeAccountMissingError as e:
        logger.warning(
            "connect destination account missing",
            extra={"extra_fields": safe_log_context(connect_account_id=connect_account_id)},
        )
        raise DestinationNotReadyError(details=e.details) from e

    logger.info(
        "connect destination status",
        extra={
            "extra_fields": safe_log_context(
                connect_account_id=connect_account_id,
                charges_enabled=bool(account.get("charges_enabled")),
                payouts_enabled=bool(account.get("payouts_enabled")),
                details_submitted=bool(account.get("details_submitted")),
            )
        },
    )

    if not account.get("charges_enabled"):
        raise DestinationNotReadyError()


def create_connect_payment_intent(
    *,
    stripe_client: StripeClient,
    amount: Numeric | None,
    connect_account_id: str | None,
    currency: str = DEFAULT_CURRENCY,
    bar_id: str | None = None,
    owner_id: str | None = None,
    metadata: Mapping[str, Any] | None = None,
    idempotency_key: str | None = None,
    correlation_id: str | None = None,
    rate: Numeric = PLATFORM_FEE_RATE,
) -> PaymentIntentResult:
    """Create a destination-charge PaymentIntent for a bar owner's account.

    Preconditions are checked in order and short-circuit:
    amount > 0, destination present, destination charges_enabled.

    Args:
        stripe_client: Stripe client instance.
        amount: Gross amount in major units.
        connect_account_id: Bar owner's Connect account.
        currency: Currency code.
        bar_id: Bar the payment is for (metadata).
        owner_id: Bar owner user ID (metadata).
        metadata: Caller metadata merged into the intent metadata.
        idempotency_key: Optional key forwarded to Stripe.
        correlation_id: Optional correlation ID for tracing.
        rate: Platform fee rate.

    Returns:
        PaymentIntentResult with the fee split.

    Raises:
        InvalidAmountError: amount missing or <= 0.
        MissingDestinationError: connect_account_id missing.
        DestinationNotReadyError: destination cannot accept charges yet.
        PaymentIntentCreationFailedError: Stripe rejected the intent.
    """
    gross = require_positive(amount)
    if not connect_account_id:
        raise MissingDestinationError()

    _ensure_destination_ready(stripe_client, connect_account_id)

    split = compute_split(gross, rate)

    try:
        intent = stripe_client.create_payment_intent(
            amount_cents=to_minor_units(gross),
            currency=currency,
            application_fee_cents=to_minor_units(split.platform_fee),
            destination_account_id=connect_account_id,
            metadata=_build_metadata(
                metadata,
                barId=bar_id,
                ownerId=owner_id,
                platformFee=format_amount(split.platform_fee),
                ownerAmount=format_amount(split.owner_amount),
            ),
            idempotency_key=idempotency_key,
            correlation_id=correlation_id,
        )
    except StripeCallError as e:
        logger.error(
            "connect payment intent creation failed",
            extra={
                "extra_fields": safe_log_context(
                    operation="create_connect_payment_intent",
                    connect_account_id=connect_account_id,
                    bar_id=bar_id,
                    stripe_code=e.code,
                )
            },
        )
        raise PaymentIntentCreationFailedError(details=e.details) from e

    logger.info(
        "connect payment intent created",
        extra={
            "extra_fields": safe_log_context(
                payment_intent_id=intent["payment_intent_id"],
                connect_account_id=connect_account_id,
                bar_id=bar_id,
                platform_fee=split.platform_fee,
                owner_amount=split.owner_amount,
            )
        },
    )

    return PaymentIntentResult(
        client_secret=intent["client_secret"],
        payment_intent_id=intent["payment_intent_id"],
        type="connect",
        platform_fee=split.platform_fee,
        owner_amount=split.owner_amount,
    )


def create_standard_payment_intent(
    *,
    stripe_client: StripeClient,
    amount: Numeric | None,
    currency: str = DEFAULT_CURRENCY,
    metadata: Mapping[str, Any] | None = None,
    idempotency_key: str | None = None,
    correlation_id: str | None = None,
) -> PaymentIntentResult:
    """Create a plain PaymentIntent on the platform account.

    Raises:
        InvalidAmountError: amount missing or <= 0.
        PaymentIntentCreationFailedError: Stripe rejected the intent.
    """
    gross = require_positive(amount)

    try:
        intent = stripe_client.create_payment_intent(
            amount_cents=to_minor_units(gross),
            currency=currency,
            metadata=_build_metadata(metadata),
            idempotency_key=idempotency_key,
            correlation_id=correlation_id,
        )
    except StripeCallError as e:
        logger.error(
            "standard payment intent creation failed",
            extra={
                "extra_fields": safe_log_context(
                    operation="create_standard_payment_intent",
                    stripe_code=e.code,
                )
            },
        )
        raise PaymentIntentCreationFailedError(details=e.details) from e

    return PaymentIntentResult(
        client_secret=intent["client_secret"],
        payment_intent_id=intent["payment_intent_id"],
        type="standard",
    )


def create_payment_intent(
    payment_type: PaymentType | None,
    *,
    stripe_client: StripeClient,
    amount: Numeric | None,
    currency: str = DEFAULT_CURRENCY,
    connect_account_id: str | None = None,
    bar_id: str | None = None,
    owner_id: str | None = None,
    metadata: Mapping[str, Any] | None = None,
    idempotency_key: str | None = None,
    correlation_id: str | None = None,
) -> PaymentIntentResult:
    """Dispatch on payment_type; None selects the standard path."""
    if payment_type == "connect":
        require_positive(amount)
        if not connect_account_id:
            raise MissingDestinationError(_CONNECT_TYPE_NEEDS_DESTINATION)
        return create_connect_payment_intent(
            stripe_client=stripe_client,
            amount=amount,
            connect_account_id=connect_account_id,
            currency=currency,
            bar_id=bar_id,
            owner_id=owner_id,
            metadata=metadata,
            idempotency_key=idempotency_key,
            correlation_id=correlation_id,
        )
    return create_standard_payment_intent(
        stripe_client=stripe_client,
        amount=amount,
        currency=currency,
        metadata=metadata,
        idempotency_key=idempotency_key,
        correlation_id=correlation_id,
    )


def confirm_payment(
    *,
    stripe_client: StripeClient,
    payment_intent_id: str | None,
) -> dict[str, Any]:
    """Check that a PaymentIntent has succeeded.

    Returns:
        The intent as returned by StripeClient.retrieve_payment_intent.

    Raises:
        MissingFieldError: payment_intent_id missing.
        PaymentIntentNotFoundError: Stripe does not know the intent.
        PaymentNotCompletedError: the intent is in any other status.
        PaymentConfirmationFailedError: Stripe call failed.
    """
    if not payment_intent_id:
        raise MissingFieldError("Payment intent ID is required")

    try:
        intent = stripe_client.retrieve_payment_intent(payment_intent_id)
    except StripeAccountMissingError as e:
        raise PaymentIntentNotFoundError(details=e.details) from e
    except StripeCallError as e:
        logger.error(
            "payment confirmation failed",
            extra={
                "extra_fields": safe_log_context(
                    operation="confirm_payment",
                    payment_intent_id=payment_intent_id,
                    stripe_code=e.code,
                )
            },
        )
        raise PaymentConfirmationFailedError(details=e.details) from e

    if intent["status"] != SUCCEEDED:
        raise PaymentNotCompletedError(details=f"status: {intent['status']}")
    return intent
