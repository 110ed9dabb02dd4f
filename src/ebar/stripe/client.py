"""Thin wrapper around Stripe SDK.

Purpose:
- Encapsulate Stripe API calls so domain code doesn't import stripe.* directly.
- Translate stripe.StripeError into StripeCallError (an UpstreamFailureError).
- Accept idempotency_key for safe retries.
- Never log full Stripe payloads (only IDs + correlation metadata).
"""

from __future__ import annotations

import logging
from typing import Any

import stripe

from ebar.domain.errors import UpstreamFailureError
from ebar.infra.settings import get_stripe_secret_key

logger = logging.getLogger(__name__)

RESOURCE_MISSING = "resource_missing"


class StripeCallError(UpstreamFailureError):
    """A Stripe API call was rejected or could not be completed."""

    default_message = "Stripe request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.code = code


class StripeAccountMissingError(StripeCallError):
    """The referenced account or PaymentIntent does not exist (resource_missing)."""

    default_message = "Stripe account not found"


def _translate(e: stripe.StripeError) -> StripeCallError:
    code = getattr(e, "code", None)
    detail = getattr(e, "user_message", None) or str(e)
    if code == RESOURCE_MISSING:
        return StripeAccountMissingError(details=detail, code=code)
    return StripeCallError(details=detail, code=code)


def _as_dict(obj: Any) -> dict[str, Any]:
    """Plain (recursive) dict copy of a StripeObject."""
    return obj.to_dict() if obj is not None else {}


class StripeClient:
    """Wrapper for Stripe Connect and PaymentIntent operations.

    Usage:
        client = StripeClient()  # reads STRIPE_SECRET_KEY from env
        account = client.retrieve_account("acct_123")
        print(account["charges_enabled"])
    """

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the Stripe client.

        Args:
            api_key: Stripe secret key. Defaults to STRIPE_SECRET_KEY env var.

        Raises:
            ConfigurationError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or get_stripe_secret_key()
        self._client = stripe.StripeClient(self._api_key)

    # -- Connect accounts ---------------------------------------------------

    def retrieve_account(self, account_id: str) -> dict[str, Any]:
        """Retrieve a Connect account.

        Raises:
            StripeAccountMissingError: If Stripe reports resource_missing.
            StripeCallError: On any other Stripe failure.
        """
        try:
            account = _as_dict(self._client.v1.accounts.retrieve(account_id))
        except stripe.StripeError as e:
            raise _translate(e) from e

        logger.info(
            "stripe_account_retrieved",
            extra={
                "account_id": account.get("id"),
                "charges_enabled": account.get("charges_enabled"),
                "payouts_enabled": account.get("payouts_enabled"),
                "details_submitted": account.get("details_submitted"),
            },
        )
        return account

    def create_account(
        self,
        *,
        email: str,
        business_name: str,
        metadata: dict[str, str],
        product_description: str,
    ) -> dict[str, Any]:
        """Create an Express Connect account."""
        params: dict[str, Any] = {
            "type": "express",
            "email": email,
            "business_profile": {
                "name": business_name,
                "product_description": product_description,
            },
            "metadata": metadata,
        }
        try:
            account = _as_dict(self._client.v1.accounts.create(params=params))
        except stripe.StripeError as e:
            raise _translate(e) from e

        logger.info("stripe_account_created", extra={"account_id": account["id"]})
        return account

    def delete_account(self, account_id: str) -> str:
        """Delete a Connect account and return the deleted ID.

        Raises:
            StripeAccountMissingError: If the account is already gone.
            StripeCallError: On any other Stripe failure.
        """
        try:
            deleted = self._client.v1.accounts.delete(account_id)
        except stripe.StripeError as e:
            raise _translate(e) from e

        logger.info("stripe_account_deleted", extra={"account_id": deleted.id})
        return deleted.id

    def create_account_link(
        self,
        account_id: str,
        *,
        refresh_url: str,
        return_url: str,
    ) -> str:
        """Create an onboarding account link and return its URL."""
        try:
            link = self._client.v1.account_links.create(
                params={
                    "account": account_id,
                    "refresh_url": refresh_url,
                    "return_url": return_url,
                    "type": "account_onboarding",
                }
            )
        except stripe.StripeError as e:
            raise _translate(e) from e

        logger.info("stripe_account_link_created", extra={"account_id": account_id})
        return link.url

    def create_login_link(self, account_id: str) -> str:
        """Create an Express dashboard login link and return its URL."""
        try:
            link = self._client.v1.accounts.login_links.create(account_id)
        except stripe.StripeError as e:
            raise _translate(e) from e

        logger.info("stripe_login_link_created", extra={"account_id": account_id})
        return link.url

    # -- PaymentIntents ------------------------------------------------------

    def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str] | None = None,
        application_fee_cents: int | None = None,
        destination_account_id: str | None = None,
        idempotency_key: str | None = None,
        correlation_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a PaymentIntent.

        For destination charges pass both application_fee_cents and
        destination_account_id; the connected account becomes the settlement
        merchant (on_behalf_of) and receives the transfer net of the fee.

        Args:
            amount_cents: Amount in cents.
            currency: Currency code (e.g., 'usd', 'eur').
            metadata: Optional metadata (string values only).
            application_fee_cents: Platform fee in cents (Connect only).
            destination_account_id: Connected account receiving the transfer.
            idempotency_key: Optional idempotency key for safe retries.
            correlation_id: Optional correlation ID for logging.

        Returns:
            Dict with payment_intent_id, client_secret and status.

        Raises:
            ValueError: If a fee is given without a destination account.
            StripeCallError: On Stripe failure.
        """
        params: dict[str, Any] = {
            "amount": amount_cents,
            "currency": currency.lower(),
            "automatic_payment_methods": {"enabled": True},
        }
        if metadata:
            params["metadata"] = metadata

        if application_fee_cents is not None or destination_account_id is not None:
            if not destination_account_id:
                raise ValueError("destination_account_id is required for Connect payments")
            params["application_fee_amount"] = application_fee_cents or 0
            params["on_behalf_of"] = destination_account_id
            params["transfer_data"] = {"destination": destination_account_id}

        options: dict[str, Any] = {}
        if idempotency_key:
            options["idempotency_key"] = idempotency_key

        try:
            intent = self._client.v1.payment_intents.create(params=params, options=options)
        except stripe.StripeError as e:
            raise _translate(e) from e

        # Log only IDs and amounts, never full payload
        logger.info(
            "stripe_payment_intent_created",
            extra={
                "payment_intent_id": intent.id,
                "amount": amount_cents,
                "application_fee_amount": application_fee_cents,
                "destination": destination_account_id,
                "correlation_id": correlation_id,
            },
        )

        return {
            "payment_intent_id": intent.id,
            "client_secret": intent.client_secret,
            "status": intent.status,
        }

    def retrieve_payment_intent(self, payment_intent_id: str) -> dict[str, Any]:
        """Retrieve a PaymentIntent.

        Returns:
            Dict with payment_intent_id, status, amount_cents, currency and metadata.
        """
        try:
            intent = self._client.v1.payment_intents.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            raise _translate(e) from e

        logger.info(
            "stripe_payment_intent_retrieved",
            extra={"payment_intent_id": intent.id, "status": intent.status},
        )
        return {
            "payment_intent_id": intent.id,
            "status": intent.status,
            "amount_cents": intent.amount,
            "currency": intent.currency,
            "metadata": _as_dict(intent.metadata),
        }

    # -- Reporting -------------------------------------------------------------

    def retrieve_balance(self, account_id: str) -> dict[str, Any]:
        """Retrieve the balance of a connected account."""
        try:
            balance = self._client.v1.balance.retrieve(
                options={"stripe_account": account_id}
            )
        except stripe.StripeError as e:
            raise _translate(e) from e
        balance = _as_dict(balance)
        return {
            "available": balance.get("available") or [],
            "pending": balance.get("pending") or [],
        }

    def list_charges(
        self,
        account_id: str,
        *,
        created_gte: int,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """List charges on a connected account created at or after created_gte."""
        try:
            charges = self._client.v1.charges.list(
                params={"limit": limit, "created": {"gte": created_gte}},
                options={"stripe_account": account_id},
            )
        except stripe.StripeError as e:
            raise _translate(e) from e
        return [_as_dict(charge) for charge in charges.data]

    def list_payouts(self, account_id: str, *, limit: int = 50) -> list[dict[str, Any]]:
        """List recent payouts of a connected account."""
        try:
            payouts = self._client.v1.payouts.list(
                params={"limit": limit},
                options={"stripe_account": account_id},
            )
        except stripe.StripeError as e:
            raise _translate(e) from e
        return [_as_dict(payout) for payout in payouts.data]
