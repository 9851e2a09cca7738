"""
Pydantic models for user data.

A user has four fields: ``id``, ``name``, ``age`` and ``sex``.  The id
is assigned by the repository; request bodies may carry one but it is
always ignored.  Fields missing from a request body take their zero
value, and types are strict so that ``"30"`` is rejected as an age.
Ages are limited to the signed 64-bit range every backend can store.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

Int64 = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]


class UserBase(BaseModel):
    name: StrictStr = Field("", examples=["Ann"])
    age: Int64 = Field(0, examples=[30])
    # Free-form, no enum is enforced.
    sex: StrictStr = Field("", examples=["F"])


class UserPayload(UserBase):
    """Body of ``POST /users`` and ``PUT /users/{id}``.

    Unknown keys, including ``id``, are dropped.
    """

    model_config = ConfigDict(extra="ignore")


class User(UserBase):
    """A stored user as returned by the API."""

    id: int = Field(..., examples=[1])

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_payload(cls, payload: UserBase, user_id: int) -> "User":
        return cls(id=user_id, name=payload.name, age=payload.age, sex=payload.sex)
