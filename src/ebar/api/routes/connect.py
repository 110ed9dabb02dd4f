"""Stripe Connect account endpoints for the owner dashboard.

Onboarding, dashboard login, account overview, disconnection and the
bar status updates derived from account capability flags.
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field

from ebar.domain.account_status import (
    CapabilityFlags,
    apply_capability_flags,
    sync_bar_connect_status,
)
from ebar.domain.accounts import (
    create_connect_account,
    create_login_link,
    create_onboarding_link,
    disconnect_account,
    get_account_overview,
)
from ebar.domain.errors import MissingFieldError
from ebar.infra.firestore import get_client
from ebar.stripe.client import StripeClient

router = APIRouter(prefix="/api", tags=["connect"])

# Module-level clients (lazy init, can be overridden for tests)
_stripe_client: StripeClient | None = None


def _get_stripe_client() -> StripeClient:
    """Get stripe client (allows override in tests)."""
    global _stripe_client
    if _stripe_client is None:
        _stripe_client = StripeClient()
    return _stripe_client


def _get_db():
    """Get Firestore client (allows override in tests)."""
    return get_client()


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateConnectAccountRequest(_CamelModel):
    email: str | None = None
    business_name: str | None = Field(default=None, alias="businessName")
    owner_id: str | None = Field(default=None, alias="ownerId")
    bar_id: str | None = Field(default=None, alias="barId")


class AccountLinkRequest(_CamelModel):
    account_id: str | None = Field(default=None, alias="accountId")
    bar_id: str | None = Field(default=None, alias="barId")


class DisconnectRequest(AccountLinkRequest):
    pass


class UpdateBarConnectStatusRequest(_CamelModel):
    connect_account_id: str | None = Field(default=None, alias="connectAccountId")
    charges_enabled: bool = Field(default=False, alias="chargesEnabled")
    payouts_enabled: bool = Field(default=False, alias="payoutsEnabled")
    details_submitted: bool = Field(default=False, alias="detailsSubmitted")


class SyncBarConnectStatusRequest(_CamelModel):
    bar_id: str | None = Field(default=None, alias="barId")


@router.post("/create-connect-account")
def create_connect_account_endpoint(body: CreateConnectAccountRequest) -> dict:
    """Create an Express account for a bar owner and return its onboarding URL."""
    if not (body.email and body.business_name and body.owner_id):
        raise MissingFieldError("Missing required fields")

    link = create_connect_account(
        stripe_client=_get_stripe_client(),
        db=_get_db() if body.bar_id else None,
        email=body.email,
        business_name=body.business_name,
        owner_id=body.owner_id,
        bar_id=body.bar_id,
    )
    return {"accountId": link["account_id"], "onboardingUrl": link["onboarding_url"]}


@router.get("/get-connect-account")
def get_connect_account_endpoint(
    account_id: str | None = Query(default=None, alias="accountId"),
) -> dict:
    """Onboarding state of a Connect account, fetched fresh from Stripe."""
    return get_account_overview(stripe_client=_get_stripe_client(), account_id=account_id)


@router.post("/create-account-link")
def create_account_link_endpoint(body: AccountLinkRequest) -> dict:
    """Create or refresh the onboarding link of an existing account."""
    link = create_onboarding_link(
        stripe_client=_get_stripe_client(),
        account_id=body.account_id,
        bar_id=body.bar_id,
    )
    return {"accountId": link["account_id"], "onboardingUrl": link["onboarding_url"]}


@router.post("/get-connect-login-link")
def get_connect_login_link_endpoint(body: AccountLinkRequest) -> dict:
    """Create a login link to the Express dashboard."""
    url = create_login_link(stripe_client=_get_stripe_client(), account_id=body.account_id)
    return {"success": True, "loginUrl": url}


@router.post("/disconnect-stripe-account")
def disconnect_stripe_account_endpoint(body: DisconnectRequest) -> dict:
    """Delete the Connect account at Stripe and unlink it from the bar.

    Already-deleted accounts answer success with the requested ID.
    """
    if not body.account_id:
        raise MissingFieldError("Account ID required")

    return disconnect_account(
        stripe_client=_get_stripe_client(),
        db=_get_db() if body.bar_id else None,
        account_id=body.account_id,
        bar_id=body.bar_id,
    )


@router.post("/update-bar-connect-status")
def update_bar_connect_status_endpoint(body: UpdateBarConnectStatusRequest) -> dict:
    """Persist the bar status derived from the given capability flags.

    Raises:
        400: connectAccountId missing.
        404: No bar references the account.
    """
    if not body.connect_account_id:
        raise MissingFieldError("Connect account ID required")

    result = apply_capability_flags(
        db=_get_db(),
        connect_account_id=body.connect_account_id,
        flags=CapabilityFlags(
            charges_enabled=body.charges_enabled,
            payouts_enabled=body.payouts_enabled,
            details_submitted=body.details_submitted,
        ),
    )
    return {
        "success": True,
        "barId": result["bar_id"],
        "connectAccountStatus": result["connect_account_status"].value,
    }


@router.post("/sync-bar-connect-status")
def sync_bar_connect_status_endpoint(body: SyncBarConnectStatusRequest) -> dict:
    """Re-fetch the bar's account from Stripe and persist the reconciled status.

    A bar whose account no longer exists at Stripe is unlinked.
    """
    if not body.bar_id:
        raise MissingFieldError("Bar ID required")

    result = sync_bar_connect_status(
        db=_get_db(),
        stripe_client=_get_stripe_client(),
        bar_id=body.bar_id,
    )
    return {
        "success": True,
        "barId": result["bar_id"],
        "connectAccountId": result["connect_account_id"],
        "connectAccountStatus": result["connect_account_status"].value,
        "paymentSetupComplete": result["payment_setup_complete"],
    }
