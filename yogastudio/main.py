from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from yogastudio.core.config import (
    APP_NAME,
    APP_VERSION,
    CORS_ORIGINS,
    DEBUG,
    ENVIRONMENT,
    LOG_FORMAT,
    LOG_LEVEL,
    validate_config,
)
from yogastudio.core.database import db_manager
from yogastudio.core.error_handlers import setup_exception_handlers
from yogastudio.core.init_db import init_database
from yogastudio.core.limits import limiter, rate_limit_handler
from yogastudio.core.logging_utils import (
    error_tracker,
    get_logger,
    log_business_event,
    setup_logging,
)
from yogastudio.core.middleware import setup_middleware

from yogastudio.staff.routers import auth as staff_auth
from yogastudio.staff.routers import dashboard
from yogastudio.staff.routers import clients as staff_clients
from yogastudio.staff.routers import trials
from yogastudio.staff.routers import schedule
from yogastudio.staff.routers import subscriptions
from yogastudio.staff.routers import attendance
from yogastudio.staff.routers import instructors
from yogastudio.staff.routers import class_types
from yogastudio.staff.routers import plans
from yogastudio.staff.routers import news
from yogastudio.staff.routers import aggregators
from yogastudio.staff.routers import settings
from yogastudio.clients.routers import auth as portal_auth
from yogastudio.clients.routers import portal
from yogastudio.clients.routers import bookings as portal_bookings
from yogastudio.webhooks import router as webhooks

STAFF_ROUTERS = (
    staff_auth,
    dashboard,
    staff_clients,
    trials,
    schedule,
    subscriptions,
    attendance,
    instructors,
    class_types,
    plans,
    news,
    aggregators,
    settings,
)
PORTAL_ROUTERS = (portal_auth, portal, portal_bookings)

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{APP_NAME} {APP_VERSION} starting ({ENVIRONMENT})")

    try:
        validate_config()
        await db_manager.check_connection()
        await init_database()
    except Exception as e:
        error_tracker.track_error("STARTUP_ERROR", str(e), {"version": APP_VERSION})
        logger.critical(f"Startup aborted: {e}")
        raise

    log_business_event(
        "application_started", "system", None, {"environment": ENVIRONMENT}
    )

    yield

    await db_manager.close_connections()
    logger.info(f"{APP_NAME} stopped")


app = FastAPI(
    title=APP_NAME,
    description="Balance yoga studio: back-office, client booking portal and notification webhook",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_middleware(app, slow_after=5.0)
setup_exception_handlers(app)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

for module in STAFF_ROUTERS + PORTAL_ROUTERS:
    app.include_router(module.router, prefix="/api/v1")

# Database change events (row inserts and updates)
app.include_router(webhooks.router, prefix="/api")


@app.get("/health", tags=["Health"])
async def health():
    body = {"status": "ok", "version": APP_VERSION}
    if DEBUG:
        body["errors"] = error_tracker.summary()
    return body
