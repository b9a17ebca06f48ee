"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from provisioning_service.api.error_handlers import register_error_handlers
from provisioning_service.api.middleware import RequestIDMiddleware, MetricsMiddleware
from provisioning_service.api.v1 import criteria
from provisioning_service.infrastructure.observability.logging import setup_logging
from provisioning_service.config import settings

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Build the app: middleware, error handlers, probes and the v1 router"""
    app = FastAPI(
        title="Provisioning Criteria Service",
        description="Loan loss provisioning criteria definitions",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # RequestIDMiddleware runs outermost
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(criteria.router, prefix="/v1", tags=["provisioning criteria"])

    return app


app = create_app()
