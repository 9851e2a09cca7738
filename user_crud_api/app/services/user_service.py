"""
Business logic for users.

There are no business rules for users yet: ``UserService`` forwards
every call to its repository unchanged.  It exists so that endpoints
never talk to a storage implementation directly.
"""

import logging
from typing import List

from ..repositories.base import UserRepository
from ..schemas.user import User, UserBase

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user operations.

    Wraps a ``UserRepository``.  Errors raised by the repository
    (``UserNotFoundError``, ``RepositoryError``) propagate unchanged.
    """

    def __init__(self, repository: UserRepository) -> None:
        self.repository = repository

    @property
    def backend_name(self) -> str:
        return self.repository.backend_name

    def create(self, user: UserBase) -> User:
        logger.debug("Creating user", extra={"user_name": user.name})
        return self.repository.create(user)

    def get_by_id(self, user_id: int) -> User:
        logger.debug("Getting user by ID", extra={"user_id": user_id})
        return self.repository.get_by_id(user_id)

    def get_all(self) -> List[User]:
        logger.debug("Getting all users")
        return self.repository.get_all()

    def update(self, user_id: int, user: UserBase) -> User:
        logger.debug("Updating user", extra={"user_id": user_id, "user_name": user.name})
        return self.repository.update(user_id, user)

    def delete(self, user_id: int) -> None:
        logger.debug("Deleting user", extra={"user_id": user_id})
        self.repository.delete(user_id)
