"""
FastAPI Application

Main entry point for the Retail Admin API. The GraphQL endpoint carries all
product, sales, revenue and inventory operations; REST serves health checks.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from retail_admin.config import Settings, get_settings
from retail_admin.config.logging import configure_logging
from retail_admin.database.connection import Database, init_database
from retail_admin.serving.api.graphql import create_graphql_router
from retail_admin.serving.api.middleware import RequestLoggingMiddleware
from retail_admin.serving.api.routes import health_router

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings, defaults to the cached environment settings
        database: Pre-built store handle. When omitted one is created from
            settings at startup and disposed at shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings=settings)
        logger.info("Starting Retail Admin API", environment=settings.app_env)

        owns_database = getattr(app.state, "database", None) is None
        if owns_database:
            app.state.database = await init_database(settings.database)

        yield

        logger.info("Shutting down...")
        if owns_database:
            await app.state.database.dispose()

    app = FastAPI(
        title="Retail Admin API",
        description="Products, sales, inventory and revenue administration",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    if database is not None:
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(
        create_graphql_router(graphiql=not settings.is_production),
        prefix="/graphql",
        tags=["GraphQL"],
    )

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Retail Admin API",
            "version": settings.version,
            "environment": settings.app_env,
            "graphql": "/graphql",
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point serving the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
