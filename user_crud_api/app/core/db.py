"""
Relational database integration.

This module knows how to open connections for the two supported SQL
backends and how to share them between requests:

* ``sqlite``: the standard library ``sqlite3`` driver, storing data in
  the file named by ``settings.database_url``.
* ``postgres``: ``psycopg2``, connecting with the ``DB_*`` settings.

Differences between the two (placeholder style, DDL, error classes,
how the new id is read back) are captured in a ``Dialect`` so that the
SQL repository can stay backend‑agnostic.

``ConnectionPool`` bounds the number of open connections, keeps a
limited number idle and retires connections older than a maximum
lifetime.  ``connect_with_retry`` is used once at startup: it keeps
trying to reach the database a fixed number of times with a fixed
pause, then gives up with ``DatabaseConnectionError``.
"""

import logging
import os
import sqlite3
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Deque, Iterator, Optional, Tuple, Type

from .config import Settings
from .errors import DatabaseConnectionError

logger = logging.getLogger(__name__)


SQLITE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(255) NOT NULL,
    age INTEGER NOT NULL,
    sex VARCHAR(10) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

POSTGRES_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    age BIGINT NOT NULL,
    sex VARCHAR(10) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


@dataclass(frozen=True)
class Dialect:
    """Backend specific details needed to talk to a SQL database."""

    name: str
    connect: Callable[[], Any]
    placeholder: str
    users_table_ddl: str
    errors: Tuple[Type[BaseException], ...]
    # True when INSERT ... RETURNING id is used to read the new id,
    # otherwise ``cursor.lastrowid`` is used.
    returning: bool

    def sql(self, statement: str) -> str:
        """Rewrite ``?`` placeholders into the dialect's style."""
        if self.placeholder == "?":
            return statement
        return statement.replace("?", self.placeholder)


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    If ``database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


def sqlite_dialect(settings: Settings) -> Dialect:
    db_path = get_database_path(settings.database_url)

    def connect() -> sqlite3.Connection:
        # Pooled connections are handed to whichever worker thread
        # borrows them, one thread at a time.
        return sqlite3.connect(db_path, check_same_thread=False)

    return Dialect(
        name="sqlite",
        connect=connect,
        placeholder="?",
        users_table_ddl=SQLITE_USERS_TABLE,
        errors=(sqlite3.Error,),
        returning=False,
    )


def postgres_dialect(settings: Settings) -> Dialect:
    import psycopg2

    dsn = settings.postgres_dsn()

    def connect() -> Any:
        return psycopg2.connect(dsn)

    return Dialect(
        name="postgres",
        connect=connect,
        placeholder="%s",
        users_table_ddl=POSTGRES_USERS_TABLE,
        errors=(psycopg2.Error,),
        returning=True,
    )


def resolve_dialect(settings: Settings) -> Dialect:
    """Return the dialect for ``settings.storage_backend``."""
    if settings.storage_backend == "sqlite":
        return sqlite_dialect(settings)
    if settings.storage_backend == "postgres":
        return postgres_dialect(settings)
    raise ValueError(f"{settings.storage_backend!r} is not a SQL backend")


class ConnectionPool:
    """A small thread‑safe pool of DB‑API connections.

    Parameters
    ----------
    dialect : Dialect
        Supplies the ``connect`` callable and the driver error classes.
    max_open : int
        Upper bound on connections open at the same time, idle or in use.
        Borrowers block until a slot is free.
    max_idle : int
        Connections returned while this many are already idle are closed.
    max_lifetime : float
        Seconds after which a connection is closed instead of reused.
        ``0`` or less disables the limit.
    """

    def __init__(
        self,
        dialect: Dialect,
        max_open: int = 25,
        max_idle: int = 25,
        max_lifetime: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_open < 1:
            raise ValueError("max_open must be at least 1")
        self.dialect = dialect
        self.max_idle = max(0, max_idle)
        self.max_lifetime = max_lifetime
        self._clock = clock
        self._slots = threading.BoundedSemaphore(max_open)
        self._idle: Deque[Tuple[Any, float]] = deque()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def errors(self) -> Tuple[Type[BaseException], ...]:
        return self.dialect.errors

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow a connection, committing on success.

        If the block raises, the connection is discarded rather than put
        back, since its transaction state is unknown.
        """
        if self._closed:
            raise RuntimeError("connection pool is closed")
        self._slots.acquire()
        try:
            conn, created_at = self._checkout()
            try:
                yield conn
                conn.commit()
            except BaseException:
                self._discard(conn)
                raise
            self._checkin(conn, created_at)
        finally:
            self._slots.release()

    def close(self) -> None:
        """Close idle connections; borrowed ones are closed when returned."""
        with self._lock:
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
        for conn, _ in idle:
            self._discard(conn)

    def _expired(self, created_at: float) -> bool:
        return self.max_lifetime > 0 and self._clock() - created_at >= self.max_lifetime

    def _checkout(self) -> Tuple[Any, float]:
        while True:
            with self._lock:
                if not self._idle:
                    break
                conn, created_at = self._idle.popleft()
            if not self._expired(created_at):
                return conn, created_at
            self._discard(conn)
        return self.dialect.connect(), self._clock()

    def _checkin(self, conn: Any, created_at: float) -> None:
        with self._lock:
            if not self._closed and len(self._idle) < self.max_idle and not self._expired(created_at):
                self._idle.append((conn, created_at))
                return
        self._discard(conn)

    def _discard(self, conn: Any) -> None:
        try:
            conn.close()
        except self.errors:
            logger.warning("Failed to close database connection", exc_info=True)


def ping(conn: Any) -> None:
    cursor = conn.cursor()
    try:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    finally:
        cursor.close()


def connect_with_retry(
    settings: Settings,
    dialect: Optional[Dialect] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ConnectionPool:
    """Open the connection pool, retrying while the database is unreachable.

    The first connection is opened and pinged eagerly; on failure the
    attempt is repeated up to ``settings.db_connect_attempts`` times with
    ``settings.db_connect_backoff`` seconds between attempts.

    Raises
    ------
    DatabaseConnectionError
        If every attempt failed.  The last driver error is chained.
    """
    dialect = dialect or resolve_dialect(settings)
    attempts = max(1, settings.db_connect_attempts)
    if dialect.name == "postgres":
        logger.info(
            "Connecting to PostgreSQL",
            extra={
                "db_host": settings.db_host,
                "db_port": settings.db_port,
                "db_name": settings.db_name,
                "db_user": settings.db_user,
                "ssl_mode": settings.db_sslmode,
            },
        )
    else:
        logger.info("Opening SQLite database", extra={"path": get_database_path(settings.database_url)})

    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        conn = None
        try:
            conn = dialect.connect()
            ping(conn)
        except dialect.errors as exc:
            last_error = exc
            if conn is not None:
                conn.close()
            logger.warning(
                "Database connection attempt %d/%d failed: %s",
                attempt,
                attempts,
                exc,
            )
            if attempt < attempts:
                sleep(settings.db_connect_backoff)
            continue

        pool = ConnectionPool(
            dialect,
            max_open=settings.db_max_open_conns,
            max_idle=settings.db_max_idle_conns,
            max_lifetime=settings.db_conn_max_lifetime,
        )
        pool._checkin(conn, pool._clock())
        logger.debug(
            "Database connection pool configured",
            extra={
                "max_open_conns": settings.db_max_open_conns,
                "max_idle_conns": settings.db_max_idle_conns,
                "conn_max_lifetime": settings.db_conn_max_lifetime,
            },
        )
        logger.info("Connected to %s database", dialect.name)
        return pool

    raise DatabaseConnectionError(
        f"could not connect to {dialect.name} database after {attempts} attempts"
    ) from last_error
