"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from issuing_console.api.middleware import MetricsMiddleware, RequestIDMiddleware
from issuing_console.api.v1 import card_groups, cards, constraints, transactions
from issuing_console.config import settings
from issuing_console.domain.exceptions import BackendAPIError, ConstraintValidationError
from issuing_console.infrastructure.observability.logging import log_backend_failure, setup_logging

setup_logging(settings.log_level)


async def _validation_error(request: Request, exc: ConstraintValidationError) -> JSONResponse:
    logging.warning(f"Rejected input: {exc}", extra={"request_id": getattr(request.state, "request_id", None)})
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _backend_error(request: Request, exc: BackendAPIError) -> JSONResponse:
    # Routes map their own failures; this only catches what escapes them
    log_backend_failure("unhandled", exc, exc.status_code, getattr(request.state, "request_id", None))
    return JSONResponse(status_code=502, content={"detail": exc.user_message("Card backend request failed")})


def create_app() -> FastAPI:
    """Create and configure the backend-for-frontend application"""
    app = FastAPI(
        title="Issuing Console",
        description="Spending constraints, cards, card groups and transaction history over the card backend",
        version="0.1.0",
    )

    # Last added runs first, so request IDs exist before metrics are taken
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(ConstraintValidationError, _validation_error)
    app.add_exception_handler(BackendAPIError, _backend_error)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in (
        (constraints.router, "constraints"),
        (cards.router, "cards"),
        (card_groups.router, "card-groups"),
        (transactions.router, "transactions"),
    ):
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
