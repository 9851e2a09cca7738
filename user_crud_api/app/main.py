"""
Main entrypoint for the User CRUD API.

This module assembles the FastAPI application, sets up logging and
includes versioned routers.  The ``create_app`` function builds and
configures the app, which is then instantiated at module import time
as ``app``.  Importing the app here makes it easy to run with uvicorn
or another ASGI server, e.g.::

    uvicorn user_crud_api.app.main:app --port 3000

For a production start with exit codes and graceful shutdown use
``run.py`` at the project root instead.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.db import connect_with_retry
from .core.errors import RepositoryError
from .core.logging_config import setup_logging
from .core.middleware import RequestLoggingMiddleware
from .repositories import InMemoryUserRepository, SqlUserRepository, UserRepository
from .services.user_service import UserService

logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> UserRepository:
    """Create the repository selected by ``settings.storage_backend``.

    SQL backends connect eagerly (with the startup retry loop), so an
    unreachable database raises ``DatabaseConnectionError`` here rather
    than on the first request.
    """
    backend = settings.storage_backend
    if backend == "memory":
        return InMemoryUserRepository()
    if backend in ("sqlite", "postgres"):
        return SqlUserRepository(connect_with_retry(settings))
    raise ValueError(f"Unknown storage backend {backend!r}; expected memory, sqlite or postgres")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or unreadable request bodies are a plain 400."""
    logger.error(
        "Failed to decode request body",
        extra={"method": request.method, "path": request.url.path, "errors": len(exc.errors())},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def repository_exception_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Storage failures are logged with their cause and hidden from clients."""
    logger.error(
        "Repository operation failed: %s",
        exc,
        exc_info=exc,
        extra={"operation": exc.operation, "user_id": exc.user_id, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RepositoryError, repository_exception_handler)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[UserRepository] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to the settings read from the
        environment at import time.
    repository : Optional[UserRepository]
        Storage to serve.  When omitted it is built from ``settings``
        with ``build_repository`` during application startup, so that
        importing this module never opens a database connection.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  The repository's
        schema is initialised on startup and the repository is closed
        on shutdown.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the startup code
    # below can log its connection attempts.
    setup_logging(settings.log_level, settings.log_format, settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not hasattr(app.state, "user_service"):
            app.state.user_service = UserService(await run_in_threadpool(build_repository, settings))
        service: UserService = app.state.user_service
        logger.info(
            "Starting %s",
            settings.project_name,
            extra={"backend": service.backend_name, "version": settings.api_version},
        )
        await run_in_threadpool(service.repository.init_schema)
        yield
        logger.info("Shutting down %s", settings.project_name)
        service.repository.close()

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings
    if repository is not None:
        app.state.user_service = UserService(repository)

    register_exception_handlers(app)

    origins = settings.cors_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
            allow_headers=["*"],
            allow_credentials="*" not in origins,
            expose_headers=["Content-Length", "Content-Type", "Location"],
            max_age=86400,
        )
    # Added last so it wraps CORS as well and sees every request.
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(v1_router)
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
