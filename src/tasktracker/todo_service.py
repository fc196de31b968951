from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .errors import InvalidInputError, store_errors
from .models import Todo, TodoId, TodoResponse, TodoUpdate
from .repositories import TodoRepository
from .utils import normalize_email, normalize_text

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class TodoService:
    """
    Business rules for todos: normalization, validation, id parsing and
    translation of entities into their response projection.

    ``now`` supplies created_at for new todos; tests pass a fixed clock.
    """

    def __init__(self, repository: TodoRepository, now: Optional[Clock] = None) -> None:
        self._repo = repository
        self._now = now or utc_now

    def list(self, email: str = "") -> List[TodoResponse]:
        """Return todos owned by ``email`` (all todos when blank), oldest first."""
        email = normalize_email(email)
        with store_errors("list todos"):
            todos = self._repo.list(email)
        return [t.to_response() for t in todos]

    def create(self, email: str, title: str) -> TodoResponse:
        """
        Create an incomplete todo for ``email``.

        Raises:
            InvalidInputError: email or title is blank after normalization.
            StoreError: the repository failed.
        """
        email = normalize_email(email)
        title = normalize_text(title)
        if not email or not title:
            raise InvalidInputError("email and title are required")

        todo = Todo(email=email, title=title, completed=False, created_at=self._now())
        with store_errors("create todo"):
            created = self._repo.create(todo)
        logger.info("Created todo %s for %s", created.id, email)
        return created.to_response()

    def update(self, todo_id: str, update: TodoUpdate) -> TodoResponse:
        """
        Apply a partial update.

        Raises:
            InvalidInputError: neither field is supplied, or a supplied title is blank.
            InvalidIDError: ``todo_id`` is not a valid identifier.
            NotFoundError: no todo has that id.
            StoreError: the repository failed.
        """
        if update.is_empty():
            raise InvalidInputError("nothing to update")

        parsed = TodoId.parse(todo_id)

        if update.title is not None:
            title = normalize_text(update.title)
            if not title:
                raise InvalidInputError("title cannot be blank")
            update = TodoUpdate(title=title, completed=update.completed)

        with store_errors("update todo"):
            updated = self._repo.update(parsed, update)
        logger.info("Updated todo %s", parsed)
        return updated.to_response()

    def delete(self, todo_id: str) -> None:
        """
        Raises:
            InvalidIDError: ``todo_id`` is not a valid identifier.
            NotFoundError: no todo has that id.
            StoreError: the repository failed.
        """
        parsed = TodoId.parse(todo_id)
        with store_errors("delete todo"):
            self._repo.delete(parsed)
        logger.info("Deleted todo %s", parsed)

    def clear(self, email: str = "") -> None:
        email = normalize_email(email)
        with store_errors("clear todos"):
            self._repo.clear(email)
        logger.info("Cleared todos for %s", email or "all users")
