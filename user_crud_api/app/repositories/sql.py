"""
Relational user storage.

``SqlUserRepository`` stores users in the ``users`` table through a
``ConnectionPool``.  Statements are written once with ``?`` placeholders
and rewritten for the active dialect, so the same class serves SQLite
and PostgreSQL.  All queries use parameterized statements.

Driver exceptions never leave this module as is: they are re‑raised as
``RepositoryError`` carrying the operation name and user id, chained to
the original error.
"""

import logging
from typing import Any, List, NoReturn, Optional

from ..core.db import ConnectionPool
from ..core.errors import RepositoryError, UserNotFoundError
from ..schemas.user import User, UserBase
from .base import UserRepository

logger = logging.getLogger(__name__)


class SqlUserRepository(UserRepository):
    """``UserRepository`` backed by a SQL table."""

    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool
        self.dialect = pool.dialect
        self.backend_name = pool.dialect.name
        # Drivers raise these outside their DB-API hierarchy when binding
        # parameters: sqlite3 for out-of-range ints, psycopg2 for NUL bytes.
        self.storage_errors = (*pool.errors, OverflowError, ValueError)

    def _fail(self, operation: str, exc: BaseException, user_id: Optional[int] = None) -> NoReturn:
        raise RepositoryError(operation, user_id) from exc

    @staticmethod
    def _row_to_user(row: Any) -> User:
        return User(id=row[0], name=row[1], age=row[2], sex=row[3])

    def init_schema(self) -> None:
        try:
            with self.pool.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(self.dialect.users_table_ddl)
                cursor.close()
        except self.storage_errors as exc:
            self._fail("create users table", exc)
        logger.info("Users table is ready", extra={"backend": self.backend_name})

    def create(self, user: UserBase) -> User:
        statement = "INSERT INTO users (name, age, sex) VALUES (?, ?, ?)"
        if self.dialect.returning:
            statement += " RETURNING id"
        try:
            with self.pool.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(self.dialect.sql(statement), (user.name, user.age, user.sex))
                user_id = cursor.fetchone()[0] if self.dialect.returning else cursor.lastrowid
                cursor.close()
        except self.storage_errors as exc:
            self._fail("create user", exc)
        return User.from_payload(user, user_id)

    def get_by_id(self, user_id: int) -> User:
        try:
            with self.pool.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    self.dialect.sql("SELECT id, name, age, sex FROM users WHERE id = ?"),
                    (user_id,),
                )
                row = cursor.fetchone()
                cursor.close()
        except self.storage_errors as exc:
            self._fail("get user by id", exc, user_id)
        if row is None:
            raise UserNotFoundError(user_id)
        return self._row_to_user(row)

    def get_all(self) -> List[User]:
        try:
            with self.pool.connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT id, name, age, sex FROM users ORDER BY id")
                rows = cursor.fetchall()
                cursor.close()
        except self.storage_errors as exc:
            self._fail("get all users", exc)
        return [self._row_to_user(row) for row in rows]

    def update(self, user_id: int, user: UserBase) -> User:
        try:
            with self.pool.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    self.dialect.sql(
                        "UPDATE users SET name = ?, age = ?, sex = ?, "
                        "updated_at = CURRENT_TIMESTAMP WHERE id = ?"
                    ),
                    (user.name, user.age, user.sex, user_id),
                )
                affected = cursor.rowcount
                cursor.close()
        except self.storage_errors as exc:
            self._fail("update user", exc, user_id)
        if affected == 0:
            raise UserNotFoundError(user_id)
        return User.from_payload(user, user_id)

    def delete(self, user_id: int) -> None:
        try:
            with self.pool.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(self.dialect.sql("DELETE FROM users WHERE id = ?"), (user_id,))
                affected = cursor.rowcount
                cursor.close()
        except self.storage_errors as exc:
            self._fail("delete user", exc, user_id)
        if affected == 0:
            raise UserNotFoundError(user_id)

    def close(self) -> None:
        self.pool.close()
