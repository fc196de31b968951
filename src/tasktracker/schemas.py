from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from .models import PublicUser, TodoResponse, TodoUpdate, User


# PUBLIC_INTERFACE
class RegisterRequest(BaseModel):
    """
    Schema for registering a user.

    Fields are accepted as-is; trimming, case-folding and blank checks happen
    in the service layer.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "alice@example.com", "password": "secret"}}
    )

    email: str = Field(default="", description="User email, case-insensitive")
    password: str = Field(default="", description="User password")

    def to_user(self) -> User:
        return User(email=self.email, password=self.password)


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """Schema for checking a user's credentials."""

    email: str = Field(default="", description="User email, case-insensitive")
    password: str = Field(default="", description="User password")


# PUBLIC_INTERFACE
class TodoCreateRequest(BaseModel):
    """Schema for creating a todo owned by ``email``."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "alice@example.com", "title": "Buy milk"}}
    )

    email: str = Field(default="", description="Owner email")
    title: str = Field(default="", description="Short title for the todo item")


# PUBLIC_INTERFACE
class TodoUpdateRequest(BaseModel):
    """
    Schema for partially updating a todo.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"completed": True}})

    title: Optional[StrictStr] = Field(default=None, description="New title")
    completed: Optional[StrictBool] = Field(default=None, description="Completion status flag")

    def to_update(self) -> TodoUpdate:
        return TodoUpdate(title=self.title, completed=self.completed)


# PUBLIC_INTERFACE
class PublicUserOut(BaseModel):
    """Schema returned by the API for a user. Never includes the password."""

    email: str

    @classmethod
    def from_domain(cls, user: PublicUser) -> "PublicUserOut":
        return cls(email=user.email)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "65a1f0c2e4b0a1b2c3d4e5f6",
                "email": "alice@example.com",
                "title": "Buy milk",
                "completed": False,
                "createdAt": "2025-01-01T10:00:00Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item (24-char hex)")
    email: str = Field(..., description="Owner email")
    title: str = Field(..., description="Short title for the todo item")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")

    @classmethod
    def from_domain(cls, todo: TodoResponse) -> "TodoOut":
        return cls(
            id=todo.id,
            email=todo.email,
            title=todo.title,
            completed=todo.completed,
            created_at=todo.created_at,
        )


class TodoEnvelope(BaseModel):
    todo: TodoOut


class TodoListEnvelope(BaseModel):
    todos: List[TodoOut]


class UserListEnvelope(BaseModel):
    users: List[PublicUserOut]


class MessageOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str
