"""FastAPI application (ASGI entry point: ebar.api.app:app)."""

from ebar.api.factory import create_app

app = create_app()
