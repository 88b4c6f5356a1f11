"""FastAPI application entry point."""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from helpdesk.core.config import settings
from helpdesk.core.errors import register_exception_handlers
from helpdesk.core.migrations import ensure_migrations
from helpdesk.core.public_cors import PublicCORSMiddleware
from helpdesk.core.structured_logging import RequestIdMiddleware, configure_logging
from helpdesk.db.base import Base
from helpdesk.db.session import engine

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
        send_default_pii=False,
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from helpdesk.core.rate_limit import limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_DB:
        # Tests and throwaway SQLite databases only; real schemas go through Alembic
        import helpdesk.db.models  # noqa: F401  (register tables)

        Base.metadata.create_all(bind=engine)
    else:
        status = ensure_migrations(engine, settings.DB_AUTO_MIGRATE)
        if not status.is_up_to_date:
            logger.warning(
                "Database schema behind head: current=%s head=%s",
                status.current_heads,
                status.head_revisions,
            )
    yield


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Helpdesk API",
    description="Support ticketing and client management API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Request-ID"],
)

# ============================================================================
# Routers
# ============================================================================

from helpdesk.routers import (
    auth,
    clients,
    comments,
    email_access,
    public_tickets,
    service_tags,
    tickets,
    users,
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(clients.router, prefix="/clients", tags=["clients"])
app.include_router(service_tags.router, prefix="/service-tags", tags=["service-tags"])
app.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
app.include_router(comments.router, prefix="/comments", tags=["comments"])

# Anonymous endpoints (open CORS, rate limited)
app.include_router(public_tickets.router, tags=["public"])
app.include_router(email_access.router, tags=["public"])
app.add_middleware(
    PublicCORSMiddleware,
    paths={
        public_tickets.PUBLIC_TICKETS_PATH,
        email_access.EMAIL_ACCESS_PATH,
        email_access.EMAIL_SMTP_PATH,
    },
)
app.add_middleware(RequestIdMiddleware)

# Locally stored attachments
if settings.STORAGE_BACKEND == "local":
    os.makedirs(settings.LOCAL_STORAGE_PATH, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.LOCAL_STORAGE_PATH), name="uploads")

# Dev router (ONLY mounted in dev mode)
if settings.ENV == "dev":
    from helpdesk.routers import dev
    app.include_router(dev.router, prefix="/dev", tags=["dev"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
