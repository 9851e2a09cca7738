"""
FastAPI dependencies shared by the endpoints.

The ``UserService`` instance is created by ``create_app`` and kept on
``app.state``; endpoints receive it through ``get_user_service`` so
that tests can build an app around any repository they like.

``parse_user_id`` validates the ``{id}`` path segment.  FastAPI's
own ``int`` conversion is not used because it answers 422 and accepts
values outside the 64‑bit range; invalid ids must be a 400.
"""

import re

from fastapi import Request

from ..core.config import Settings
from ..core.errors import InvalidUserIdError
from ..schemas.user import INT64_MAX, INT64_MIN
from ..services.user_service import UserService

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def parse_user_id(raw_id: str) -> int:
    """Parse a path id as a non‑zero base‑10 signed 64‑bit integer.

    Raises ``InvalidUserIdError`` otherwise.
    """
    if not _DECIMAL.fullmatch(raw_id):
        raise InvalidUserIdError(raw_id, "not a base-10 integer")
    value = int(raw_id)
    if not INT64_MIN <= value <= INT64_MAX:
        raise InvalidUserIdError(raw_id, "out of 64-bit range")
    if value == 0:
        raise InvalidUserIdError(raw_id, "id can't be 0")
    return value
