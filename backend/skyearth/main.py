"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from skyearth.api import api_router
from skyearth.api.middleware import register_middleware
from skyearth.config import DEFAULT_JWT_SECRET, Settings, get_settings
from skyearth.database import Database
from skyearth.errors import register_exception_handlers
from skyearth.logging_config import configure_logging
from skyearth.schemas.auth import StatusResponse
from skyearth.services.auth_service import AuthService
from skyearth.services.token_service import TokenService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    database: Database = app.state.database

    # Startup: both steps must succeed before serving traffic
    try:
        await database.ensure_database()
        await database.ensure_schema()
    except Exception:
        logger.exception("Failed to initialize the database; refusing to start")
        await database.dispose()
        raise

    logger.info("Application ready to accept requests")
    yield

    # Shutdown
    await database.dispose()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application with explicit configuration and store handles."""
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; using the built-in development secret")
    if settings.jwt_expire_hours <= 0:
        logger.warning("JWT_EXPIRE_HOURS is %s; issued tokens never expire", settings.jwt_expire_hours)

    token_service = TokenService.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="SkyEarth authentication backend - registration, login and current user",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.token_service = token_service
    app.state.auth_service = AuthService(token_service, bcrypt_rounds=settings.bcrypt_rounds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middleware(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.get("/", response_model=StatusResponse)
    async def root():
        """API status endpoint."""
        return StatusResponse(
            message=f"{settings.app_name} is running",
            version=settings.app_version,
        )

    return app


configure_logging(get_settings().debug)
app = create_app()


def run():
    """Console entry point."""
    settings = get_settings()
    uvicorn.run(
        "skyearth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
