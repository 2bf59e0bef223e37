"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from digital_wallet.api.middleware import RequestIDMiddleware, MetricsMiddleware
from digital_wallet.api.responses import error_response
from digital_wallet.api.v1 import (
    admin,
    auth,
    bank,
    bills,
    money_requests,
    notifications,
    transactions,
    transfers,
    users,
    wallets,
)
from digital_wallet.config import settings
from digital_wallet.domain.exceptions import DomainException, ErrorKind
from digital_wallet.infrastructure.database.models import Base
from digital_wallet.infrastructure.database.session import engine, get_session_factory
from digital_wallet.infrastructure.observability.logging import setup_logging
from digital_wallet.services.bills import seed_default_billers

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_schema_on_startup:
        Base.metadata.create_all(bind=engine)
        seed_default_billers(get_session_factory())
        logger.info("Database schema ensured")
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Digital Wallet",
        description="Wallets, transfers, bill payments and simulated bank deposits",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Auth dependencies raise domain errors; render them in the same envelope as service failures
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        return error_response(exc.kind, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [f"{'.'.join(str(p) for p in e['loc'] if p != 'body')}: {e['msg']}" for e in exc.errors()]
        return error_response(ErrorKind.VALIDATION, "Validation failed", errors)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(wallets.router, prefix="/v1", tags=["wallets"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(transfers.router, prefix="/v1", tags=["transfers"])
    app.include_router(bills.router, prefix="/v1", tags=["bills"])
    app.include_router(bank.router, prefix="/v1", tags=["bank"])
    app.include_router(money_requests.router, prefix="/v1", tags=["money requests"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
