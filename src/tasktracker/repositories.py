from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from threading import RLock
from typing import Dict, List, Tuple

from .errors import AlreadyExistsError, NotFoundError
from .models import Todo, TodoId, TodoUpdate, User
from .settings import Settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """
    Storage contract for users.

    Implementations store values exactly as given: normalization and validation
    belong to the service layer.
    """

    @abstractmethod
    def find_by_email(self, email: str) -> User:
        """Return the user stored under ``email``. Raise NotFoundError if none."""

    @abstractmethod
    def insert(self, user: User) -> None:
        """Persist a new user. Raise AlreadyExistsError if the email is taken."""

    @abstractmethod
    def list(self) -> List[User]:
        """Return every stored user, in no particular order."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every user."""


# PUBLIC_INTERFACE
class TodoRepository(ABC):
    """Storage contract for todos. An empty email filter means "all owners"."""

    @abstractmethod
    def list(self, email: str = "") -> List[Todo]:
        """Return todos for ``email`` (or all), ordered by created_at ascending."""

    @abstractmethod
    def create(self, todo: Todo) -> Todo:
        """Persist ``todo`` and return it with its newly assigned id."""

    @abstractmethod
    def update(self, todo_id: TodoId, update: TodoUpdate) -> Todo:
        """
        Write the supplied fields of ``update`` and return the updated todo.
        Raise NotFoundError if no todo has ``todo_id``.
        """

    @abstractmethod
    def delete(self, todo_id: TodoId) -> None:
        """Delete a todo by id. Raise NotFoundError if it does not exist."""

    @abstractmethod
    def clear(self, email: str = "") -> None:
        """Delete todos owned by ``email``, or every todo when email is empty."""


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory user repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, User] = {}

    def find_by_email(self, email: str) -> User:
        with self._lock:
            user = self._items.get(email)
            if user is None:
                raise NotFoundError("user not found")
            return user

    def insert(self, user: User) -> None:
        with self._lock:
            if user.email in self._items:
                raise AlreadyExistsError()
            self._items[user.email] = user

    def list(self) -> List[User]:
        with self._lock:
            return list(self._items.values())

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class InMemoryTodoRepository(TodoRepository):
    """
    Thread-safe in-memory todo repository suitable for testing and default runtime.

    Ids are generated the same way the document store generates them, so the
    string form returned to clients is identical for both backends.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[TodoId, Todo] = {}
        # Insertion counter breaks ties between todos sharing a created_at.
        self._seq: Dict[TodoId, int] = {}
        self._next_seq = 0

    def list(self, email: str = "") -> List[Todo]:
        with self._lock:
            items = [t for t in self._items.values() if not email or t.email == email]
            return sorted(items, key=lambda t: (t.created_at, self._seq[t.id]))

    def create(self, todo: Todo) -> Todo:
        with self._lock:
            todo_id = todo.id if todo.id is not None else TodoId.new()
            created = replace(todo, id=todo_id)
            self._items[todo_id] = created
            self._seq[todo_id] = self._next_seq
            self._next_seq += 1
            return created

    def update(self, todo_id: TodoId, update: TodoUpdate) -> Todo:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                raise NotFoundError("todo not found")

            # Update only provided fields
            changes = {}
            if update.title is not None:
                changes["title"] = update.title
            if update.completed is not None:
                changes["completed"] = update.completed
            updated = replace(existing, **changes)

            self._items[todo_id] = updated
            return updated

    def delete(self, todo_id: TodoId) -> None:
        with self._lock:
            if self._items.pop(todo_id, None) is None:
                raise NotFoundError("todo not found")
            self._seq.pop(todo_id, None)

    def clear(self, email: str = "") -> None:
        with self._lock:
            doomed = [i for i, t in self._items.items() if not email or t.email == email]
            for todo_id in doomed:
                del self._items[todo_id]
                del self._seq[todo_id]


# PUBLIC_INTERFACE
def build_repositories(settings: Settings) -> Tuple[UserRepository, TodoRepository]:
    """
    Return the user and todo repositories for the configured backend.
    - memory: InMemoryUserRepository / InMemoryTodoRepository
    - mongo: MongoUserRepository / MongoTodoRepository over a pinged client

    Raises:
        StoreError: if the mongo backend is selected and the server is unreachable.
    """
    if settings.persistence_backend == "mongo":
        from .db import build_mongo_repositories

        return build_mongo_repositories(settings)

    logger.info("Using in-memory repositories")
    return InMemoryUserRepository(), InMemoryTodoRepository()
