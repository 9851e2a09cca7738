"""
Storage for ``User`` records.

``UserRepository`` is the contract the service layer depends on.  Two
implementations satisfy it with identical semantics:
``InMemoryUserRepository`` keeps users in a lock‑guarded dict and
``SqlUserRepository`` keeps them in the ``users`` table of a SQLite or
PostgreSQL database.
"""

from .base import UserRepository
from .memory import InMemoryUserRepository
from .sql import SqlUserRepository

__all__ = ["UserRepository", "InMemoryUserRepository", "SqlUserRepository"]
