from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from .errors import InvalidIDError

_HEX_ID = re.compile(r"[0-9a-fA-F]{24}")


# PUBLIC_INTERFACE
class TodoId:
    """
    Opaque todo identifier.

    Callers only create, parse and render it. The canonical text form is the
    24-character lowercase hex string of a BSON ObjectId, which is what both the
    document store and the in-memory repository hand out.
    """

    __slots__ = ("_oid",)

    def __init__(self, oid: ObjectId) -> None:
        self._oid = oid

    @classmethod
    def new(cls) -> "TodoId":
        return cls(ObjectId())

    @classmethod
    def parse(cls, value: Optional[str]) -> "TodoId":
        """
        Parse the canonical hex form.

        Raises:
            InvalidIDError: if value is not exactly 24 hex digits.
        """
        if not isinstance(value, str) or _HEX_ID.fullmatch(value) is None:
            raise InvalidIDError()
        try:
            return cls(ObjectId(value))
        except (InvalidId, TypeError) as exc:
            raise InvalidIDError() from exc

    @classmethod
    def from_object_id(cls, oid: ObjectId) -> "TodoId":
        return cls(oid)

    @property
    def object_id(self) -> ObjectId:
        return self._oid

    def __str__(self) -> str:
        return str(self._oid)

    def __repr__(self) -> str:
        return f"TodoId({str(self._oid)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TodoId):
            return NotImplemented
        return self._oid == other._oid

    def __hash__(self) -> int:
        return hash(self._oid)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class PublicUser:
    """User projection safe to expose to clients: email only."""

    email: str


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class User:
    """
    A registered user.

    Fields:
    - email: normalized (trimmed, lowercased) email, unique identity key
    - password: trimmed password as supplied at registration
    """

    email: str
    password: str = field(repr=False)

    def to_public(self) -> PublicUser:
        return PublicUser(email=self.email)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TodoResponse:
    """Read-only todo projection with the identifier rendered as a string."""

    id: str
    email: str
    title: str
    completed: bool
    created_at: datetime


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Todo:
    """
    A task owned by the user identified by ``email``.

    ``id`` is None until a repository assigns it on create. The owner email is
    not checked against the user store.
    """

    email: str
    title: str
    created_at: datetime
    completed: bool = False
    id: Optional[TodoId] = None

    def to_response(self) -> TodoResponse:
        return TodoResponse(
            id=str(self.id) if self.id is not None else "",
            email=self.email,
            title=self.title,
            completed=self.completed,
            created_at=self.created_at,
        )


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TodoUpdate:
    """
    Partial update for a todo. None means "not supplied"; only supplied fields
    are written.
    """

    title: Optional[str] = None
    completed: Optional[bool] = None

    def is_empty(self) -> bool:
        return self.title is None and self.completed is None
