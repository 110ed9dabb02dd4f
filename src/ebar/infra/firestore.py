"""Firestore client access.

Provides:
- get_client(): lazily created, process-wide Firestore client
- reset_client(): drop the cached client (tests)
"""

from __future__ import annotations

import threading

from google.cloud import firestore

from ebar.infra.settings import get_gcp_project

_client: firestore.Client | None = None
_lock = threading.Lock()


def get_client() -> firestore.Client:
    """Get the Firestore client, creating it on first use.

    Credentials come from the environment (ADC); the project from
    GOOGLE_CLOUD_PROJECT / GCP_PROJECT_ID when set.
    """
    global _client
    if _client is None:
        with _lock:
            if _client is None:
                _client = firestore.Client(project=get_gcp_project())
    return _client


def reset_client() -> None:
    """Forget the cached client."""
    global _client
    with _lock:
        _client = None
