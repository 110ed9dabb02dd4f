"""Deployment settings read from the environment.

Values are read on every call so tests and redeploys never see a stale copy.
Required settings raise ConfigurationError when absent.
"""

from __future__ import annotations

import os

from ebar.domain.errors import ConfigurationError

DEFAULT_BARS_COLLECTION = "beachBars"


def _require(name: str, message: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(message, details=f"{name} not configured")
    return value


def get_stripe_secret_key() -> str:
    """Stripe secret API key (STRIPE_SECRET_KEY)."""
    return _require("STRIPE_SECRET_KEY", "Stripe configuration missing")


def get_webhook_secret() -> str:
    """Stripe webhook endpoint secret (STRIPE_WEBHOOK_SECRET)."""
    return _require("STRIPE_WEBHOOK_SECRET", "Webhook configuration missing")


def get_frontend_url() -> str:
    """Base URL of the web app, without trailing slash (FRONTEND_URL)."""
    return _require("FRONTEND_URL", "Frontend URL configuration missing").rstrip("/")


def get_gcp_project() -> str | None:
    """GCP project for Firestore; None lets the SDK pick its default."""
    return os.environ.get("GOOGLE_CLOUD_PROJECT") or os.environ.get("GCP_PROJECT_ID")


def get_bars_collection() -> str:
    """Firestore collection holding bar documents."""
    return os.environ.get("BARS_COLLECTION") or DEFAULT_BARS_COLLECTION
