"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from krisefikser.core.config import settings
from krisefikser.core.errors import ValidationError
from krisefikser.core.structured_logging import configure_logging
from krisefikser.db.session import engine

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Don't send emails/positions to Sentry
    )
    logger.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Krisefikser API",
    description="Household emergency preparedness: households, incidents and alerts",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Service-level caller mistakes become 4xx with the service's message."""
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


app.add_exception_handler(ValidationError, validation_error_handler)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# ============================================================================
# Routers
# ============================================================================

from krisefikser.routers import (  # noqa: E402
    households_router,
    incidents_router,
    internal_router,
    map_icons_router,
    membership_requests_router,
    notifications_router,
    scenarios_router,
    users_router,
    websocket_router,
)

app.include_router(users_router)
app.include_router(households_router)
app.include_router(membership_requests_router)
app.include_router(notifications_router)
app.include_router(scenarios_router)
app.include_router(incidents_router)
app.include_router(map_icons_router)
app.include_router(websocket_router)
app.include_router(internal_router)


@app.get("/health")
def health_check():
    """Liveness and readiness check with a database round trip."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check database round trip failed")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "down"})
    return {"status": "ok", "version": settings.VERSION}
