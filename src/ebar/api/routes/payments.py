"""Payment intent and payment statistics endpoints."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field

from ebar.api.serialization import money_json
from ebar.domain.connect_payments import (
    DEFAULT_CURRENCY,
    PaymentIntentResult,
    confirm_payment,
    create_connect_payment_intent,
    create_payment_intent,
)
from ebar.domain.fees import from_minor_units
from ebar.domain.payment_stats import get_payment_stats
from ebar.observability.correlation import get_correlation_id
from ebar.stripe.client import StripeClient

router = APIRouter(prefix="/api", tags=["payments"])

# Module-level stripe client (lazy init, can be overridden for tests)
_stripe_client: StripeClient | None = None


def _get_stripe_client() -> StripeClient:
    """Get stripe client (allows override in tests)."""
    global _stripe_client
    if _stripe_client is None:
        _stripe_client = StripeClient()
    return _stripe_client


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConnectPaymentIntentRequest(_CamelModel):
    amount: Decimal | None = None
    currency: str = DEFAULT_CURRENCY
    connect_account_id: str | None = Field(default=None, alias="connectAccountId")
    bar_id: str | None = Field(default=None, alias="barId")
    owner_id: str | None = Field(default=None, alias="ownerId")
    metadata: dict[str, Any] = Field(default_factory=dict)
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")


class PaymentIntentRequest(ConnectPaymentIntentRequest):
    # Absent type means a standard payment
    type: Literal["standard", "connect"] = "standard"


class ConfirmPaymentRequest(_CamelModel):
    payment_intent_id: str | None = Field(default=None, alias="paymentIntentId")


def _render(result: PaymentIntentResult, *, tagged: bool) -> dict[str, Any]:
    body: dict[str, Any] = {
        "clientSecret": result.client_secret,
        "paymentIntentId": result.payment_intent_id,
    }
    if result.type == "connect":
        body["platformFee"] = result.platform_fee
        body["ownerAmount"] = result.owner_amount
    if tagged:
        body["type"] = result.type
    return body


@router.post("/create-connect-payment-intent")
def create_connect_payment_intent_endpoint(body: ConnectPaymentIntentRequest) -> dict:
    """Create a destination-charge PaymentIntent for a bar owner.

    Returns:
        clientSecret, paymentIntentId, platformFee, ownerAmount.

    Raises:
        400: Invalid amount, missing connectAccountId, destination not ready.
        500: Stripe failure or missing configuration.
    """
    result = create_connect_payment_intent(
        stripe_client=_get_stripe_client(),
        amount=body.amount,
        connect_account_id=body.connect_account_id,
        currency=body.currency,
        bar_id=body.bar_id,
        owner_id=body.owner_id,
        metadata=body.metadata,
        idempotency_key=body.idempotency_key,
        correlation_id=get_correlation_id(),
    )
    return money_json(_render(result, tagged=False))


@router.post("/payment")
def create_payment_intent_endpoint(body: PaymentIntentRequest) -> dict:
    """Create a standard or Connect PaymentIntent, selected by ``type``.

    Returns:
        Same shape as /create-connect-payment-intent, tagged with type.
        Standard payments carry no fee fields.
    """
    result = create_payment_intent(
        body.type,
        stripe_client=_get_stripe_client(),
        amount=body.amount,
        currency=body.currency,
        connect_account_id=body.connect_account_id,
        bar_id=body.bar_id,
        owner_id=body.owner_id,
        metadata=body.metadata,
        idempotency_key=body.idempotency_key,
        correlation_id=get_correlation_id(),
    )
    return money_json(_render(result, tagged=True))


@router.post("/confirm-payment")
def confirm_payment_endpoint(body: ConfirmPaymentRequest) -> dict:
    """Confirm that a PaymentIntent succeeded.

    Raises:
        400: paymentIntentId missing, or the intent has not succeeded.
        404: Unknown intent.
    """
    intent = confirm_payment(
        stripe_client=_get_stripe_client(), payment_intent_id=body.payment_intent_id
    )
    return {
        "success": True,
        "paymentIntent": {
            "id": intent["payment_intent_id"],
            "status": intent["status"],
            "amount": money_json(from_minor_units(intent["amount_cents"])),
            "currency": intent["currency"],
            "metadata": intent["metadata"],
        },
        "message": "Payment confirmed successfully",
    }


@router.get("/get-payment-stats")
def get_payment_stats_endpoint(
    account_id: str | None = Query(default=None, alias="accountId"),
) -> dict:
    """Earnings, fees and payouts of a connected account (major units)."""
    stats = get_payment_stats(stripe_client=_get_stripe_client(), account_id=account_id)
    return {"success": True, "data": money_json(stats)}
