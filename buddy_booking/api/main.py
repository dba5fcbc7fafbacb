"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from buddy_booking.api.middleware import MetricsMiddleware, RequestIDMiddleware
from buddy_booking.api.v1 import accounts, bookings, buddies, sessions
from buddy_booking.config import settings
from buddy_booking.infrastructure.database.session import get_session_factory
from buddy_booking.infrastructure.observability.logging import setup_logging
from buddy_booking.infrastructure.observability.metrics import register_event_metrics
from buddy_booking.services.container import BookingCore, build_core

# Setup structured logging
setup_logging(settings.log_level)


def create_app(core: BookingCore | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    All requests share one BookingCore so that its per-key locks arbitrate
    between concurrent bookings. Tests pass their own core.
    """
    app = FastAPI(
        title="Buddy Booking",
        description="Session booking and credit settlement for language buddies",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if core is None:
        core = build_core(get_session_factory(), settings)
    register_event_metrics(core.events)
    app.state.core = core

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(buddies.router, prefix="/v1", tags=["buddies"])
    app.include_router(bookings.router, prefix="/v1", tags=["bookings"])
    app.include_router(sessions.router, prefix="/v1", tags=["sessions"])

    return app
