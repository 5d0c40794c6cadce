"""FastAPI application factory"""

import logging
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.responses import Response

from stuvendor.api.dependencies import get_request_id
from stuvendor.api.middleware import RequestIDMiddleware, MetricsMiddleware
from stuvendor.api.v1 import vendors, orders, admin
from stuvendor.domain.exceptions import DomainException, LedgerUnavailable
from stuvendor.infrastructure.database.session import get_db
from stuvendor.infrastructure.observability.logging import setup_logging
from stuvendor.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="StuVendor Gateway",
        description="Vendor ledger, split payments and withdrawals",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Domain errors a route did not map itself
    @app.exception_handler(LedgerUnavailable)
    async def ledger_unavailable_handler(request: Request, exc: LedgerUnavailable):
        logger.error("Ledger unavailable", extra={"request_id": get_request_id(request), "error": str(exc)})
        return JSONResponse(status_code=503, content={"detail": "Ledger unavailable"})

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        request_id = get_request_id(request)
        logger.error(
            "Unhandled domain error",
            extra={"request_id": request_id, "error_type": type(exc).__name__, "error": str(exc)},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal error", "request_id": request_id})

    # Health check endpoint; the ledger is unusable without the database
    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Health check failed", extra={"error": str(e)})
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "service": settings.service_name, "database": "unavailable"},
            )
        return {"status": "ok", "service": settings.service_name, "database": "ok"}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(vendors.router, prefix="/v1", tags=["vendors"])
    app.include_router(orders.router, prefix="/v1", tags=["orders"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
