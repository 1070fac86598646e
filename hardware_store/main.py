# hardware_store/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hardware_store.core.config import Settings, get_settings
from hardware_store.core.errors import StoreError
from hardware_store.core.logging import configure_logging
from hardware_store.core.sms_client import SmsClient
from hardware_store.database import Database
from hardware_store.services.notification_service import (
    BackgroundNotificationDispatcher,
    NotificationDispatcher,
    SmsNotificationDispatcher,
)

# Routers
from hardware_store.routers.orders import router as orders_router
from hardware_store.routers.admin_stats import router as admin_stats_router

logger = logging.getLogger("uvicorn")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    notifier: NotificationDispatcher | None = None,
) -> FastAPI:
    """
    Build the API application.

    Tests pass their own database and notifier; in production both are
    built from settings inside the lifespan.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Startup:
          - Open the DB and create tables.
          - Start the background notification worker.

        Shutdown:
          - Drain the notification worker, close the SMS client and DB.
        """
        db = database or Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        logger.info("Startup: connecting to database...")
        try:
            db.open()
            db.create_all()
            logger.info("Startup: DB connection OK, tables verified.")
        except Exception as e:
            logger.error(f"Startup: DB connection FAILED: {e}")
            raise

        sms_client: SmsClient | None = None
        if notifier is not None:
            app.state.notifier = notifier
            background = None
        else:
            sms_client = SmsClient(settings)
            background = BackgroundNotificationDispatcher(
                SmsNotificationDispatcher(sms_client, settings)
            )
            background.start()
            app.state.notifier = background

        app.state.database = db
        try:
            yield
        finally:
            if background is not None:
                background.stop()
            if sms_client is not None:
                sms_client.close()
            if database is None:
                db.close()

    app = FastAPI(
        title=settings.PROJECT_NAME or "Hardware Store API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # --- CORS configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Versioned API prefix, e.g. /api/v1
    app.include_router(orders_router, prefix=settings.API_V1_STR)
    app.include_router(admin_stats_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "hardware-store-backend"}

    return app


_settings = get_settings()
configure_logging(_settings.LOG_LEVEL, json_output=_settings.LOG_JSON)

app = create_app(_settings)
