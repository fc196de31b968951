from datetime import datetime, timezone

import pytest

from tasktracker.repositories import InMemoryTodoRepository, InMemoryUserRepository
from tasktracker.todo_service import TodoService
from tasktracker.user_service import UserService

FIXED_NOW = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def todo_repo():
    return InMemoryTodoRepository()


@pytest.fixture
def user_service(user_repo):
    return UserService(user_repo)


@pytest.fixture
def todo_service(todo_repo):
    return TodoService(todo_repo, now=fixed_now)


@pytest.fixture
def now():
    return FIXED_NOW
