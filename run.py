"""Entry point for the User CRUD API.

Starts the API under Uvicorn with the backend chosen by
``STORAGE_BACKEND`` (``memory``, ``sqlite`` or ``postgres``).  All
configuration is read from environment variables; see
``user_crud_api/app/core/config.py`` for the full list.

The storage backend is connected before the server starts listening.
If the database cannot be reached after the configured retries, the
error is logged and the process exits with status 1.  SIGINT and
SIGTERM are handled by Uvicorn, which stops accepting connections and
gives in‑flight requests ``SHUTDOWN_TIMEOUT`` seconds to finish.

Usage:
    python run.py
"""
import asyncio
import logging
import sys

from uvicorn import Config, Server

logger = logging.getLogger("user_crud_api.run")


def load_settings():
    """Read ``Settings`` from the environment.

    Imported here rather than at module level: ``core.config`` builds its
    default ``settings`` on import, and a malformed ``PORT`` or
    ``DB_PORT`` must surface as ``ValueError`` inside ``main``.
    """
    from user_crud_api.app.core.config import Settings

    return Settings()


async def run_api(settings) -> None:
    """Start the API using Uvicorn.

    Host and port come from ``settings`` (``HOST`` and ``PORT``, by
    default ``0.0.0.0`` and ``3000``).
    """
    from user_crud_api.app.main import build_repository, create_app

    repository = build_repository(settings)
    app = create_app(settings, repository)
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout,
    )
    server = Server(config)
    logger.info(
        "Server starting",
        extra={"address": f"{settings.host}:{settings.port}", "backend": settings.storage_backend},
    )
    await server.serve()
    if not server.started:
        raise SystemExit(1)


def main() -> int:
    try:
        settings = load_settings()
    except ValueError:
        # Logging is not configured yet; the last-resort handler prints to stderr.
        logger.critical("Invalid configuration", exc_info=True)
        return 1

    from user_crud_api.app.core.errors import DatabaseConnectionError
    from user_crud_api.app.core.logging_config import setup_logging

    setup_logging(settings.log_level, settings.log_format, settings.log_file or None)
    try:
        asyncio.run(run_api(settings))
    except DatabaseConnectionError:
        logger.critical("Failed to connect to database", exc_info=True)
        return 1
    except ValueError:
        logger.critical("Invalid configuration", exc_info=True)
        return 1
    except KeyboardInterrupt:
        pass
    logger.info("Server shut down gracefully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
