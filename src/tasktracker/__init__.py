"""
Task tracker backend package.

The service layer (UserService, TodoService) and the repository contracts are
importable without FastAPI; ``create_app`` builds the HTTP application around
them.
"""

from .errors import (  # noqa: F401
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidIDError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
    StoreError,
)
from .models import PublicUser, Todo, TodoId, TodoResponse, TodoUpdate, User  # noqa: F401
from .todo_service import TodoService  # noqa: F401
from .user_service import UserService  # noqa: F401

__version__ = "0.1.0"
