"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with an in‑memory store and no further setup.  In a
production deployment you should override these via environment
variables, for example ``STORAGE_BACKEND=postgres`` together with the
``DB_*`` connection variables.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Every field uses ``default_factory`` so that a fresh ``Settings()``
    re‑reads the environment.  Tests rely on this to build settings after
    patching variables with ``monkeypatch.setenv``.
    """

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "User CRUD API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 3000))

    # ``memory``, ``sqlite`` or ``postgres``.
    storage_backend: str = field(default_factory=lambda: os.getenv("STORAGE_BACKEND", "memory").lower())

    # Path to the SQLite database file.  A relative path is resolved
    # against the project root by ``core.db``.
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "users.db"))

    # PostgreSQL connection parameters.
    db_host: str = field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    db_port: int = field(default_factory=lambda: _env_int("DB_PORT", 5432))
    db_user: str = field(default_factory=lambda: os.getenv("DB_USER", "postgres"))
    db_password: str = field(default_factory=lambda: os.getenv("DB_PASSWORD", ""))
    db_name: str = field(default_factory=lambda: os.getenv("DB_NAME", "postgres"))
    db_sslmode: str = field(default_factory=lambda: os.getenv("DB_SSLMODE", "disable"))

    # Connection pool bounds, shared by all requests.
    db_max_open_conns: int = field(default_factory=lambda: _env_int("DB_MAX_OPEN_CONNS", 25))
    db_max_idle_conns: int = field(default_factory=lambda: _env_int("DB_MAX_IDLE_CONNS", 25))
    db_conn_max_lifetime: float = field(default_factory=lambda: _env_float("DB_CONN_MAX_LIFETIME", 300.0))

    # Startup only: fixed number of attempts with a fixed pause between them.
    db_connect_attempts: int = field(default_factory=lambda: _env_int("DB_CONNECT_ATTEMPTS", 5))
    db_connect_backoff: float = field(default_factory=lambda: _env_float("DB_CONNECT_BACKOFF", 2.0))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    # ``json`` for production, ``console`` for local development.
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "json").lower())
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", ""))

    # Comma‑separated list of allowed origins.  Empty disables CORS.
    cors_origins: str = field(default_factory=lambda: os.getenv("CORS_ORIGINS", ""))

    # Seconds uvicorn waits for in‑flight requests on SIGINT/SIGTERM.
    shutdown_timeout: int = field(default_factory=lambda: _env_int("SHUTDOWN_TIMEOUT", 5))

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def postgres_dsn(self) -> str:
        """Return a libpq connection string for ``psycopg2.connect``."""
        return (
            f"host={self.db_host} port={self.db_port} user={self.db_user} "
            f"password={self.db_password} dbname={self.db_name} sslmode={self.db_sslmode}"
        )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
