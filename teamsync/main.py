from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional

from teamsync.core.config import settings
from teamsync.core.database import init_db, close_db
from teamsync.core.exceptions import register_exception_handlers
from teamsync.core.logging_config import logger
from teamsync.core.middleware import RequestLoggingMiddleware
from teamsync.api.v1.router import api_router
from teamsync.services.chat_hub import ChatBroadcastHub
from teamsync.services.chat_store import ChatStore, SqlChatStore
from teamsync.services.connection_registry import ConnectionRegistry
from teamsync.services.room_registry import RoomRegistry
from teamsync.services.signaling_hub import SignalingRelayHub


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast in production"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if settings.JWT_SECRET_KEY == "CHANGE_ME":
        if settings.is_production:
            errors.append("JWT_SECRET_KEY is using the default value")
        else:
            warnings.append("JWT_SECRET_KEY is using the default value")

    if settings.REQUIRE_WS_AUTH and settings.JWT_SECRET_KEY == "CHANGE_ME":
        errors.append("REQUIRE_WS_AUTH is on but JWT_SECRET_KEY is not configured")

    if not settings.REQUIRE_WS_AUTH:
        warnings.append("REQUIRE_WS_AUTH is off - handshake identities are trusted as sent")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] ✓ Critical configuration validated")
    return True


async def ensure_database_ready() -> bool:
    """Create tables if missing. Failure is logged; chat then drops messages until the DB is back."""
    try:
        await init_db()
        logger.info("[Startup] Database tables ready")
        return True
    except Exception as e:
        logger.error(f"[Startup] Failed to ensure database ready: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    await validate_critical_config()

    db_ready = await ensure_database_ready()
    if not db_ready:
        logger.warning("[Startup] Database not ready - chat messages will not be persisted")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


def create_app(store: Optional[ChatStore] = None) -> FastAPI:
    """
    Build the application with its own hubs and registries.

    Every app instance owns separate registries, so two apps in one process
    (e.g. in tests) never share connection or room state.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Realtime chat and call signaling for team collaboration",
        version="1.0.0",
        lifespan=lifespan,
        redirect_slashes=False,
    )

    store = store or SqlChatStore()
    app.state.chat_store = store
    app.state.chat_hub = ChatBroadcastHub(ConnectionRegistry(), store)
    app.state.signaling_hub = SignalingRelayHub(RoomRegistry(), store)

    register_exception_handlers(app)

    # Add middleware (order matters - last added runs first)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "message": str(exc) if settings.DEBUG else "An error occurred"
            }
        )

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": "1.0.0",
            "docs": "/docs",
        }

    app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    return app


app = create_app()


def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(
        "teamsync.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
