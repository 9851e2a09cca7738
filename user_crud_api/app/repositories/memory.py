"""
In‑process user storage.

Users live in a dict keyed by id.  Ids come from a counter that only
moves forward, so insertion order and id order are the same and
``get_all`` can simply return the values.  A single lock guards the
dict and the counter; FastAPI runs sync endpoints in a threadpool, so
requests do reach this object concurrently.
"""

import logging
import threading
from typing import Dict, List

from ..core.errors import UserNotFoundError
from ..schemas.user import User, UserBase
from .base import UserRepository

logger = logging.getLogger(__name__)


class InMemoryUserRepository(UserRepository):
    """Lock‑guarded in‑memory implementation of ``UserRepository``."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._users: Dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, user: UserBase) -> User:
        with self._lock:
            user_id = self._next_id
            self._next_id += 1
            stored = User.from_payload(user, user_id)
            self._users[user_id] = stored
        logger.debug("Stored user in memory", extra={"user_id": user_id})
        return stored.model_copy()

    def get_by_id(self, user_id: int) -> User:
        with self._lock:
            stored = self._users.get(user_id)
            if stored is None:
                raise UserNotFoundError(user_id)
            return stored.model_copy()

    def get_all(self) -> List[User]:
        with self._lock:
            return [stored.model_copy() for stored in self._users.values()]

    def update(self, user_id: int, user: UserBase) -> User:
        with self._lock:
            if user_id not in self._users:
                raise UserNotFoundError(user_id)
            stored = User.from_payload(user, user_id)
            self._users[user_id] = stored
            return stored.model_copy()

    def delete(self, user_id: int) -> None:
        with self._lock:
            if self._users.pop(user_id, None) is None:
                raise UserNotFoundError(user_id)
