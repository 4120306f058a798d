"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from agency_ledger.api.dependencies import get_request_id
from agency_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from agency_ledger.api.v1 import payments, projects, reports, transactions
from agency_ledger.domain.exceptions import (
    ConflictError,
    DomainException,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from agency_ledger.infrastructure.observability.logging import setup_logging
from agency_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 422,
    ConflictError: 409,
    InvalidStateError: 409,
    NotFoundError: 404,
    PermissionDeniedError: 403,
    StorageError: 502,
}


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Translate domain errors into HTTP responses"""
    status_code = STATUS_CODES.get(type(exc), 400)
    body = {"detail": str(exc)}
    if isinstance(exc, ValidationError) and exc.installment_numbers:
        body["installment_numbers"] = exc.installment_numbers

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": get_request_id(request), "path": request.url.path, "status": status_code},
    )
    return JSONResponse(status_code=status_code, content=body)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Agency Ledger",
        description="Project budgets, installment payments and agency finances",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(projects.router, prefix="/v1", tags=["projects"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
