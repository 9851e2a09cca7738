"""Abstract repository contract for users."""

from abc import ABC, abstractmethod
from typing import List

from ..schemas.user import User, UserBase


class UserRepository(ABC):
    """Persistence contract shared by every storage backend.

    All implementations must behave the same way:

    * ``create`` ignores any id on the input and assigns a new one that
      is greater than every id handed out before.  Ids are never reused.
    * ``get_all`` returns users in ascending id order, or ``[]``.
    * ``update`` is a full replace: ``name``, ``age`` and ``sex`` are
      overwritten even when they hold zero values.
    * ``get_by_id``, ``update`` and ``delete`` raise ``UserNotFoundError``
      when no user has the given id.
    * Storage failures surface as ``RepositoryError``.
    * Returned ``User`` objects are copies; mutating them does not change
      what is stored.
    """

    backend_name: str = "unknown"

    @abstractmethod
    def create(self, user: UserBase) -> User:
        ...

    @abstractmethod
    def get_by_id(self, user_id: int) -> User:
        ...

    @abstractmethod
    def get_all(self) -> List[User]:
        ...

    @abstractmethod
    def update(self, user_id: int, user: UserBase) -> User:
        ...

    @abstractmethod
    def delete(self, user_id: int) -> None:
        ...

    def init_schema(self) -> None:
        """Make sure the backing storage exists.  Safe to call repeatedly."""

    def close(self) -> None:
        """Release any resources held by the repository."""
