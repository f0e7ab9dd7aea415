from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

# Load environment variables as early as possible
load_dotenv()

from .application.errors import BookingError
from .application.ports.notifier import BookingNotifier
from .application.scheduling.policy import SchedulingPolicy
from .config import settings
from .database import create_db_and_tables, engine as default_engine, session_factory
from .exceptions import booking_error_handler, http_exception_handler, unhandled_exception_handler
from .infrastructure.notifications.dispatcher import NotificationDispatcher
from .infrastructure.notifications.twilio_sms import build_sms_sender
from .middleware import LoggingMiddleware, RateLimitMiddleware, SecurityMiddleware
from .routers import admin_router, appointments_router, catalog_router, config_router, notifications_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        await create_db_and_tables(app.state.engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        # Keep serving; /health reports the failure
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


def create_app(
    db_engine: Optional[AsyncEngine] = None,
    notifier: Optional[BookingNotifier] = None,
    policy: Optional[SchedulingPolicy] = None,
    rate_limit: Optional[int] = None,
) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None),
    )

    app.state.engine = db_engine or default_engine
    app.state.session_factory = session_factory(app.state.engine)
    app.state.policy = policy or settings.scheduling_policy()
    app.state.notifier = notifier or NotificationDispatcher(app.state.session_factory, build_sms_sender())
    logger.info(
        "Booking days: %s; hours %s-%s; schedule locking %s",
        app.state.policy.allowed_days_label,
        app.state.policy.opens_label,
        app.state.policy.closes_label,
        "on" if app.state.policy.lock_schedule else "off",
    )

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(RateLimitMiddleware, rate_limit=rate_limit)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(appointments_router.router)
    app.include_router(admin_router.router)
    app.include_router(catalog_router.hospitals_router)
    app.include_router(catalog_router.medical_tests_router)
    app.include_router(config_router.router)
    app.include_router(notifications_router.router)

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": {
                "ok": getattr(app.state, "db_init_ok", True),
                "dialect": app.state.engine.dialect.name,
                "error": getattr(app.state, "db_init_error", None),
            },
        }

    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(
        "medbook.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=1,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
