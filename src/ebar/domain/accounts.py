"""Connect account lifecycle for bar owners.

Covers account creation and onboarding links, the Express dashboard login
link, the account overview shown on the owner dashboard, and disconnection.

Disconnection is two steps (delete at Stripe, then unlink the bar) and not
transactional. A bar left pointing at a deleted account is repaired by
account_status.sync_bar_connect_status, and payment creation treats such a
destination as not ready.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from ebar.domain.account_status import CapabilityFlags, reconcile_status
from ebar.domain.errors import BarNotFoundError, MissingFieldError, NotFoundError
from ebar.infra.repositories.bars_repository import (
    link_connect_account,
    unlink_connect_account,
)
from ebar.infra.settings import get_frontend_url
from ebar.observability.redaction import safe_log_context
from ebar.stripe.client import StripeAccountMissingError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from ebar.stripe.client import StripeClient

logger = logging.getLogger(__name__)

PLATFORM_NAME = "ebar"
PRODUCT_DESCRIPTION = "Beach bar services and rentals"


def onboarding_urls(account_id: str, bar_id: str | None = None) -> tuple[str, str]:
    """Build (refresh_url, return_url) for an onboarding link.

    Raises:
        ConfigurationError: If FRONTEND_URL is not set.
    """
    base = get_frontend_url()
    query = {"account": account_id}
    if bar_id:
        query["barId"] = bar_id
    qs = urlencode(query)
    return (
        f"{base}/dashboard/connect/refresh?{qs}",
        f"{base}/dashboard/connect/success?{qs}",
    )


def create_onboarding_link(
    *,
    stripe_client: StripeClient,
    account_id: str | None,
    bar_id: str | None = None,
) -> dict[str, str]:
    """Create or refresh the onboarding link of an existing account."""
    if not account_id:
        raise MissingFieldError("Account ID required")

    refresh_url, return_url = onboarding_urls(account_id, bar_id)
    url = stripe_client.create_account_link(
        account_id,
        refresh_url=refresh_url,
        return_url=return_url,
    )
    return {"account_id": account_id, "onboarding_url": url}


def create_connect_account(
    *,
    stripe_client: StripeClient,
    db: FirestoreClient,
    email: str | None,
    business_name: str | None,
    owner_id: str | None,
    bar_id: str | None = None,
) -> dict[str, str]:
    """Create an Express account for a bar owner and start onboarding.

    When bar_id is given the new account is linked to the bar right away,
    with status pending.
    """
    if not email or not business_name or not owner_id:
        raise MissingFieldError("Missing required fields")

    # Fail on configuration before creating anything at Stripe
    get_frontend_url()

    account = stripe_client.create_account(
        email=email,
        business_name=business_name,
        metadata={"ownerId": owner_id, "platform": PLATFORM_NAME},
        product_description=PRODUCT_DESCRIPTION,
    )
    account_id = account["id"]

    if bar_id:
        link_connect_account(db, bar_id, account_id)

    logger.info(
        "connect account created",
        extra={
            "extra_fields": safe_log_context(
                connect_account_id=account_id, owner_id=owner_id, bar_id=bar_id
            )
        },
    )

    link = create_onboarding_link(
        stripe_client=stripe_client, account_id=account_id, bar_id=bar_id
    )
    return link


def create_login_link(*, stripe_client: StripeClient, account_id: str | None) -> str:
    """Create a login link to the Express dashboard."""
    if not account_id:
        raise MissingFieldError("Account ID required")
    return stripe_client.create_login_link(account_id)


def get_account_overview(*, stripe_client: StripeClient, account_id: str | None) -> dict[str, Any]:
    """Fetch an account fresh and summarize its onboarding state.

    Raises:
        MissingFieldError: If account_id is missing.
        NotFoundError: If Stripe does not know the account.
    """
    if not account_id:
        raise MissingFieldError("Account ID required")

    try:
        account = stripe_client.retrieve_account(account_id)
    except StripeAccountMissingError as e:
        raise NotFoundError("Connect account not found", details=e.details) from e

    flags = CapabilityFlags.from_account(account)
    requirements = account.get("requirements") or {}

    return {
        "accountId": account.get("id", account_id),
        "isOnboarded": flags.details_submitted and flags.charges_enabled and flags.payouts_enabled,
        "status": reconcile_status(flags).value,
        "chargesEnabled": flags.charges_enabled,
        "payoutsEnabled": flags.payouts_enabled,
        "detailsSubmitted": flags.details_submitted,
        "businessProfile": account.get("business_profile"),
        "requirements": requirements or None,
        "currentlyDue": list(requirements.get("currently_due") or []),
        "eventuallyDue": list(requirements.get("eventually_due") or []),
        "pastDue": list(requirements.get("past_due") or []),
        "pendingVerification": list(requirements.get("pending_verification") or []),
        "disabledReason": requirements.get("disabled_reason"),
    }


def disconnect_account(
    *,
    stripe_client: StripeClient,
    db: FirestoreClient,
    account_id: str | None,
    bar_id: str | None = None,
) -> dict[str, Any]:
    """Delete a Connect account at Stripe, then unlink it from its bar.

    Deletion is idempotent: an account Stripe reports as missing counts as
    deleted and the requested ID is echoed back.

    Raises:
        MissingFieldError: If account_id is missing.
        StripeCallError: If Stripe fails for any other reason.
    """
    if not account_id:
        raise MissingFieldError("Account ID required")

    try:
        deleted_id = stripe_client.delete_account(account_id)
        message = "Stripe account disconnected successfully"
    except StripeAccountMissingError:
        logger.info(
            "connect account already deleted",
            extra={"extra_fields": safe_log_context(connect_account_id=account_id)},
        )
        deleted_id = account_id
        message = "Stripe account was already disconnected"

    if bar_id:
        try:
            unlink_connect_account(db, bar_id)
        except BarNotFoundError:
            logger.warning(
                "bar not found while unlinking connect account",
                extra={"extra_fields": safe_log_context(bar_id=bar_id, connect_account_id=account_id)},
            )

    return {"success": True, "message": message, "deletedAccountId": deleted_id}
