import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weatherscent import __version__
from weatherscent.api import chat, perfumes, preferences, recommendations, users, weather, wishlist
from weatherscent.core.config import Settings, settings as default_settings
from weatherscent.core.logging import configure_logging
from weatherscent.schemas import CamelModel
from weatherscent.services import OpenAIService, WeatherService
from weatherscent.storage import SqlStorage, Storage, StorageError, create_storage

logger = logging.getLogger(__name__)


class HealthResponse(CamelModel):
    status: str
    storage: str
    weather_configured: bool
    llm_configured: bool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    app_settings: Settings = app.state.settings
    storage: Storage = app.state.storage
    logger.info(f"Starting {app_settings.project_name} API (storage={storage.name})")
    logger.info(f"Weather provider configured: {app.state.weather.is_configured}")
    logger.info(f"LLM configured: {app.state.llm.is_configured} (model={app.state.llm.model})")

    if isinstance(storage, SqlStorage) and app_settings.db_auto_create:
        logger.info("DB_AUTO_CREATE set, creating tables")
        await storage.create_schema()

    yield

    # Shutdown
    logger.info("Shutting down, closing storage...")
    await storage.close()


async def storage_error_handler(request: Request, exc: StorageError):
    logger.exception(f"Storage failure on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Storage operation failed"})


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    weather_service: Optional[WeatherService] = None,
    llm_service: Optional[OpenAIService] = None,
) -> FastAPI:
    """
    Build the API. Collaborators not passed in are created from settings.

    The storage implementation is chosen here, once, and shared by every request.
    """
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(
        title="WeatherScent - Perfume Recommendation API",
        description="Weather-aware perfume recommendations, wishlist and consultant chat",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage or create_storage(settings)
    app.state.weather = weather_service or WeatherService(
        api_key=settings.openweather_api_key,
        base_url=settings.openweather_url,
        timeout=settings.weather_timeout,
    )
    app.state.llm = llm_service or OpenAIService(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        timeout=settings.llm_timeout,
    )

    allowed_origins = [
        settings.frontend_url,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorageError, storage_error_handler)

    # Include API routers
    app.include_router(weather.router)
    app.include_router(perfumes.router)
    app.include_router(recommendations.router)
    app.include_router(preferences.router)
    app.include_router(wishlist.router)
    app.include_router(chat.router)
    app.include_router(users.router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Report which backends are in use (credentials are never echoed)."""
        return HealthResponse(
            status="ok",
            storage=app.state.storage.name,
            weather_configured=app.state.weather.is_configured,
            llm_configured=app.state.llm.is_configured,
        )

    return app


app = create_app()
