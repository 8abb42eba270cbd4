"""Chat Aggregator - FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_aggregator.api.router import api_router
from chat_aggregator.core import async_session_maker, engine, init_db, settings, setup_logging
from chat_aggregator.core.logging import get_logger
from chat_aggregator.services.passwords import get_password_hasher
from chat_aggregator.services.sources import SourceRegistry
from chat_aggregator.services.sweeper import CredentialSweeper

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"Security configuration: {warning}")

    await init_db()

    # Warm the dummy hash before the first login attempt
    await get_password_hasher().dummy_hash()

    sweeper = CredentialSweeper(
        async_session_maker,
        session_interval=settings.session_sweep_interval_seconds,
        token_interval=settings.token_sweep_interval_seconds,
    )
    await sweeper.start()
    app.state.sweeper = sweeper

    yield

    # Shutdown
    logger.info("Shutting down...")
    await sweeper.stop()
    await app.state.sources.close_all()
    await engine.dispose()


def create_app(sources: SourceRegistry | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Chat aggregator backend with cookie session and JWT authentication",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.state.sources = sources if sources is not None else SourceRegistry()

    # Credentials are allowed so the UI origin can send the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
        ],
    )

    # Prometheus metrics (before routers so /metrics is registered first)
    if settings.enable_metrics:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator(
            excluded_handlers=["/health", "/metrics"],
        ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    app.include_router(api_router)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
