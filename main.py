"""
PayPal Gateway Plugin - Main Application Entry Point

This module initializes the FastAPI application that exposes the PayPal
payment plugin to the host framework over HTTP.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api import routes
from api.middleware import log_api_entry
from core.dependencies import clear_settings, get_settings, init_plugin, init_settings
from core.errors import GatewayError
from core.logging import configure_logging
from core.metrics import init_metrics
from core.settings import Settings
from core.tracing import init_tracer
from db.session import init_db
from db.store import SqlPaymentStore

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events."""
    # Startup
    init_settings()
    settings = get_settings()
    init_tracer()
    init_db(settings)
    # fails fast when the PayPal credentials are not configured
    init_plugin(settings, SqlPaymentStore())
    log.info("app.started", app_name=settings.APP_NAME, environment=settings.ENVIRONMENT)

    yield
    # Shutdown
    clear_settings()


app = FastAPI(
    title="PayPal Gateway Plugin",
    description="""
    ## PayPal Orders v2 adapter

    Exposes the payment gateway contract of the host framework:
    - **Credentials**: the client id the checkout front end needs
    - **Create**: open a PayPal order for a local payment
    - **Update amount**: patch a pending order's amount
    - **Process**: verify that a completed order matches its payment
    """,
    version="1.0.0",
    lifespan=lifespan,
)

FastAPIInstrumentor.instrument_app(app)

init_metrics(app, Settings())

app.middleware("http")(log_api_entry)

app.add_exception_handler(GatewayError, routes.gateway_error_handler)


@app.get("/healthz")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint to verify API status."""
    return {
        "status": "ok",
        "app_name": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


API_PREFIX = "/api/v1"

app.include_router(routes.router, prefix=API_PREFIX)


def main():
    configure_logging()
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
