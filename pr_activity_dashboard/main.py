"""Main FastAPI application for the PR Activity Dashboard."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from pr_activity_dashboard.api.routes import router as api_router
from pr_activity_dashboard.config import Settings, get_settings
from pr_activity_dashboard.github.client import GitHubAPIClient
from pr_activity_dashboard.services.classifier import CommentClassifier
from pr_activity_dashboard.utils import Database, get_logger

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application for the given settings."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the database on startup and release it on shutdown."""
        logger.info("Starting PR Activity Dashboard API")

        database = Database(settings.database_url).open()
        app.state.settings = settings
        app.state.database = database
        app.state.github_client = GitHubAPIClient(settings)
        app.state.classifier = CommentClassifier()
        logger.info("Application startup complete")

        try:
            yield
        finally:
            logger.info("Shutting down PR Activity Dashboard API")
            database.close()

    app = FastAPI(
        title=settings.app_name,
        description="Pull request and comment activity for a set of GitHub repositories",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/database-info")
    def database_info(request: Request) -> dict[str, str]:
        """Database info endpoint."""
        return request.app.state.database.info()

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """HTTP exception handler."""
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, _exc: Exception) -> JSONResponse:
        """500 error handler."""
        logger.error("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


def serve(settings: Settings) -> None:
    """Run the API with uvicorn."""
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve(get_settings())
