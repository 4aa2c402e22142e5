"""
FastAPI application entry point for the local shell.

The shell is meant to run on the user's own machine. It exposes the
file manager actions (configure, list, upload, download, delete) as
JSON endpoints for a front-end, and every action is executed by this
process talking directly to the storage endpoint.

For local development:
    uvicorn minio_manager.main:app --reload

Or simply:
    python -m minio_manager.main
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import config, files, health
from .config.settings import get_settings
from .infrastructure.credentials.store import CredentialStoreError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and shutdown of the shell."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "MinIO File Manager starting",
        extra={
            "version": __version__,
            "mock_mode": settings.storage_mock_mode,
            "credential_store": settings.credential_store_path,
        }
    )

    yield

    logger.info("MinIO File Manager shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. Called once at
    import time for uvicorn and again by tests that need a fresh app.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        File manager for MinIO and other S3-compatible object storage.

        ## Workflow

        1. **Configure**: `PUT /api/v1/config`
           - Endpoint, access key, secret key, bucket, HTTPS flag
           - Stored locally, obfuscated (not encrypted)

        2. **Browse**: `GET /api/v1/files`

        3. **Upload**: `POST /api/v1/files` (multipart, one or more files)

        4. **Download / delete**: `GET` / `DELETE /api/v1/files/{name}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        config.router,
        prefix="/api/v1/config",
        tags=["Configuration"],
    )

    app.include_router(
        files.router,
        prefix="/api/v1/files",
        tags=["Files"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - point at docs."""
        return {
            "message": settings.api_title,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(CredentialStoreError)
    async def credential_store_exception_handler(request, exc):
        """The local key-value file could not be read or written."""
        logger.error(
            "Credential store failure",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(
            status_code=500,
            content={"detail": f"Credential store unavailable: {exc}"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error and returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error."}
        )

    logger.info(
        "FastAPI application created",
        extra={"title": settings.api_title, "version": __version__},
    )

    return app


# Create the application instance
# This is what uvicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "minio_manager.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
