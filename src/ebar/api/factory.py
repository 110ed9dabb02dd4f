"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ebar.domain.errors import PaymentsError
from ebar.observability.correlation import (
    CORRELATION_ID_HEADER,
    correlation_scope,
    resolve_correlation_id,
)
from ebar.observability.logging import get_logger
from ebar.observability.redaction import safe_log_context

from .routers import public
from .routes import connect, payments, webhooks_stripe

logger = get_logger(__name__)


async def _payments_error_handler(request: Request, exc: PaymentsError) -> JSONResponse:
    level = "error" if exc.status_code >= 500 else "warning"
    getattr(logger, level)(
        "request failed",
        extra={
            "extra_fields": safe_log_context(
                path=request.url.path,
                error_type=type(exc).__name__,
                status_code=exc.status_code,
                details=exc.details,
            )
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed bodies are client errors like any other missing field
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Create the FastAPI app with all routes and error handlers mounted.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="eBar Payments",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = resolve_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        with correlation_scope(cid):
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    app.add_exception_handler(PaymentsError, _payments_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    app.include_router(public.router)
    app.include_router(payments.router)
    app.include_router(connect.router)
    app.include_router(webhooks_stripe.router)

    return app
