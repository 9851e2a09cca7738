"""
User endpoints for API v1.

CRUD over the single ``User`` resource:

* ``POST /users`` creates a user and answers 201 with an empty body;
  the new id is given in the ``Location`` header.
* ``GET /users`` lists all users ordered by id.
* ``GET /users/{id}`` returns one user.
* ``PUT /users/{id}`` replaces a user's name, age and sex.
* ``DELETE /users/{id}`` removes a user and answers 204.

A path id that is not a non‑zero 64‑bit integer is rejected with 400
before the service is called.  Unknown ids answer 404.  Storage errors
are left to the application exception handler, which answers 500.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from user_crud_api.app.api.deps import get_user_service, parse_user_id
from user_crud_api.app.core.errors import InvalidUserIdError, UserNotFoundError
from user_crud_api.app.schemas.user import User, UserPayload
from user_crud_api.app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


def valid_user_id(raw_id: str) -> int:
    """Dependency wrapping ``parse_user_id`` with a 400 response."""
    try:
        return parse_user_id(raw_id)
    except InvalidUserIdError as e:
        logger.error("Invalid user ID", extra={"raw_id": e.raw, "reason": e.reason})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _not_found(e: UserNotFoundError) -> HTTPException:
    logger.warning("User not found", extra={"user_id": e.user_id})
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")


@router.post("", status_code=status.HTTP_201_CREATED, response_class=Response)
def create_user(
    payload: UserPayload,
    service: UserService = Depends(get_user_service),
) -> Response:
    """Create a user.  Any ``id`` in the body is ignored."""
    user = service.create(payload)
    logger.info("User created successfully", extra={"user_id": user.id, "user_name": user.name})
    return Response(status_code=status.HTTP_201_CREATED, headers={"Location": f"/users/{user.id}"})


@router.get("", response_model=List[User])
def list_users(service: UserService = Depends(get_user_service)) -> List[User]:
    users = service.get_all()
    logger.info("Retrieved all users successfully", extra={"users_count": len(users)})
    return users


@router.get("/{raw_id}", response_model=User)
def get_user(
    user_id: int = Depends(valid_user_id),
    service: UserService = Depends(get_user_service),
) -> User:
    try:
        user = service.get_by_id(user_id)
    except UserNotFoundError as e:
        raise _not_found(e)
    logger.info("User retrieved successfully", extra={"user_id": user_id})
    return user


@router.put("/{raw_id}", status_code=status.HTTP_200_OK, response_class=Response)
def update_user(
    payload: UserPayload,
    user_id: int = Depends(valid_user_id),
    service: UserService = Depends(get_user_service),
) -> Response:
    """Replace ``name``, ``age`` and ``sex``; omitted fields become zero values."""
    try:
        service.update(user_id, payload)
    except UserNotFoundError as e:
        raise _not_found(e)
    logger.info("User updated successfully", extra={"user_id": user_id})
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/{raw_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_user(
    user_id: int = Depends(valid_user_id),
    service: UserService = Depends(get_user_service),
) -> Response:
    try:
        service.delete(user_id)
    except UserNotFoundError as e:
        raise _not_found(e)
    logger.info("User deleted successfully", extra={"user_id": user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
