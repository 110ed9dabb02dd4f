"""Bars repository - Connect account fields on bar documents.

Uses the google-cloud-firestore SDK directly (no ODM). Bar documents live in
the collection returned by settings.get_bars_collection() ("beachBars").
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ebar.domain.errors import BarNotFoundError, UpstreamFailureError
from ebar.infra.settings import get_bars_collection

if TYPE_CHECKING:
    from ebar.domain.account_status import ConnectStatus


def _bars(db: firestore.Client):
    return db.collection(get_bars_collection())


def _snapshot_to_dict(snapshot) -> dict[str, Any]:
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


def get_bar(db: firestore.Client, bar_id: str) -> dict[str, Any] | None:
    """Get a bar by document ID.

    Returns:
        Bar dict (document fields plus "id") or None if not found.

    Raises:
        UpstreamFailureError: If Firestore rejects the read.
    """
    try:
        snapshot = _bars(db).document(bar_id).get()
    except gcp_exceptions.GoogleAPICallError as e:
        raise UpstreamFailureError("Failed to load bar", details=str(e)) from e

    if not snapshot.exists:
        return None
    return _snapshot_to_dict(snapshot)


def find_bar_by_connect_account(
    db: firestore.Client,
    connect_account_id: str,
) -> dict[str, Any] | None:
    """Find the bar whose connectAccountId equals connect_account_id.

    Stripe has no notion of bars, so this is the join from webhook payloads
    back to our data. An account is linked to at most one bar.

    Returns:
        Bar dict or None if no bar references the account.
    """
    query = (
        _bars(db)
        .where(filter=FieldFilter("connectAccountId", "==", connect_account_id))
        .limit(1)
    )
    try:
        for snapshot in query.stream():
            return _snapshot_to_dict(snapshot)
    except gcp_exceptions.GoogleAPICallError as e:
        raise UpstreamFailureError("Failed to look up bar", details=str(e)) from e
    return None


def _update(db: firestore.Client, bar_id: str, fields: dict[str, Any], message: str) -> None:
    try:
        _bars(db).document(bar_id).update(fields)
    except gcp_exceptions.NotFound as e:
        raise BarNotFoundError() from e
    except gcp_exceptions.GoogleAPICallError as e:
        raise UpstreamFailureError(message, details=str(e)) from e


def update_connect_status(db: firestore.Client, bar_id: str, status: ConnectStatus) -> None:
    """Persist the reconciled Connect status on a bar.

    Raises:
        BarNotFoundError: If the bar document does not exist.
    """
    _update(
        db,
        bar_id,
        {
            "connectAccountStatus": status.value,
            "paymentSetupComplete": status.value == "active",
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
        "Failed to update bar Connect account status",
    )


def link_connect_account(db: firestore.Client, bar_id: str, connect_account_id: str) -> None:
    """Store a newly created Connect account on a bar (status pending)."""
    _update(
        db,
        bar_id,
        {
            "connectAccountId": connect_account_id,
            "connectAccountStatus": "pending",
            "paymentSetupComplete": False,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
        "Failed to link Connect account to bar",
    )


def unlink_connect_account(db: firestore.Client, bar_id: str) -> None:
    """Remove the Connect account reference and its status from a bar."""
    _update(
        db,
        bar_id,
        {
            "connectAccountId": firestore.DELETE_FIELD,
            "connectAccountStatus": firestore.DELETE_FIELD,
            "paymentSetupComplete": False,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
        "Failed to unlink Connect account from bar",
    )
