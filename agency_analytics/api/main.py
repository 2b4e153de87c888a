"""
FastAPI application factory.

Serves /health and /metrics and mounts the cash-flow, segmentation, leads
and reports routers under /v1.
"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from agency_analytics.api.middleware import MetricsMiddleware, RequestIDMiddleware
from agency_analytics.api.v1 import cash_flow, leads, reports, segmentation
from agency_analytics.config import settings
from agency_analytics.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create the app with request ID and latency middleware and the four analytics routers"""
    app = FastAPI(
        title="Agency Analytics",
        description="Cash flow, customer segmentation and lead scoring for insurance agencies",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(cash_flow.router, prefix="/v1", tags=["cash-flow"])
    app.include_router(segmentation.router, prefix="/v1", tags=["segmentation"])
    app.include_router(leads.router, prefix="/v1", tags=["leads"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
