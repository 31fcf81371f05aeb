"""FastAPI application factory"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from bank_tracker.api.middleware import MetricsMiddleware, RequestIDMiddleware
from bank_tracker.api.sessions import SessionRegistry
from bank_tracker.api.v1 import accounts, cards, installments, session, transactions, views
from bank_tracker.config import settings
from bank_tracker.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from bank_tracker.domain.gateway import PersistenceGateway
from bank_tracker.infrastructure.gateways.factory import GatewayFactory
from bank_tracker.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def _register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions to HTTP responses"""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(AuthorizationError)
    async def unauthorized(request: Request, exc: AuthorizationError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(RemoteError)
    async def backend_unavailable(request: Request, exc: RemoteError):
        logging.error(f"Backend error: {exc}", extra={"request_id": getattr(request.state, "request_id", None)})
        return JSONResponse(status_code=503, content={"detail": "Backend unavailable, please try again"})


def create_app(gateway_factory: Optional[Callable[[], PersistenceGateway]] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Bank Tracker",
        description="Personal ledger of accounts, cards, transactions and installments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.sessions = SessionRegistry(
        gateway_factory or GatewayFactory(settings),
        idle_timeout=settings.session_idle_timeout_seconds,
        max_per_user=settings.max_sessions_per_user,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    _register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(session.router, prefix="/v1", tags=["session"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])
    app.include_router(views.router, prefix="/v1", tags=["views"])

    return app


app = create_app()
