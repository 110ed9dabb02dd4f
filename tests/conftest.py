"""Shared pytest fixtures for eBar payments tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_cached_clients():
    """Reset module-level Stripe/Firestore clients between tests.

    Route modules cache their clients lazily. Without this reset a client
    built (or patched) in one test would leak into the next.
    """
    import ebar.api.routes.connect as connect_module
    import ebar.api.routes.payments as payments_module
    import ebar.infra.firestore as firestore_module

    connect_module._stripe_client = None
    payments_module._stripe_client = None
    firestore_module.reset_client()
    yield
    connect_module._stripe_client = None
    payments_module._stripe_client = None
    firestore_module.reset_client()
