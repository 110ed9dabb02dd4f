"""Unauthenticated probes outside the /api surface."""

from fastapi import APIRouter

router = APIRouter(tags=["public"])


@router.get("/health")
def health() -> dict:
    """Liveness probe for Cloud Run."""
    return {"status": "ok", "service": "ebar-payments"}
