from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Tuple

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import AlreadyExistsError, NotFoundError, StoreError
from .models import Todo, TodoId, TodoUpdate, User
from .repositories import TodoRepository, UserRepository
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Fields:
    users: str = "users"
    todos: str = "todos"
    id: str = "_id"
    email: str = "email"
    password: str = "password"
    title: str = "title"
    completed: str = "completed"
    created_at: str = "createdAt"


_F = _Fields()


# PUBLIC_INTERFACE
def connect_mongo(uri: str, timeout_ms: int = 10000) -> MongoClient:
    """
    Create a MongoClient and verify the server answers a ping.

    ``timeout_ms`` bounds server selection and every later operation, so a
    stalled store surfaces as an exception instead of hanging the request.

    Raises:
        StoreError: if the server cannot be reached within the timeout.
    """
    client: MongoClient = MongoClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        timeoutMS=timeout_ms,
        tz_aware=True,
    )
    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        logger.error("MongoDB at %s is unreachable: %s", uri, exc)
        raise StoreError("could not connect to MongoDB") from exc
    logger.info("Connected to MongoDB at %s", uri)
    return client


# PUBLIC_INTERFACE
def ensure_indexes(db: Database) -> None:
    """Create the unique email index on users and the owner/created index on todos."""
    db[_F.users].create_index(_F.email, unique=True)
    db[_F.todos].create_index([(_F.email, ASCENDING), (_F.created_at, ASCENDING)])


class MongoUserRepository(UserRepository):
    """UserRepository backed by a MongoDB collection."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    @staticmethod
    def _to_user(doc: Mapping[str, Any]) -> User:
        return User(email=doc[_F.email], password=doc.get(_F.password, ""))

    def find_by_email(self, email: str) -> User:
        doc = self._collection.find_one({_F.email: email})
        if doc is None:
            raise NotFoundError("user not found")
        return self._to_user(doc)

    def insert(self, user: User) -> None:
        try:
            self._collection.insert_one({_F.email: user.email, _F.password: user.password})
        except DuplicateKeyError as exc:
            raise AlreadyExistsError() from exc

    def list(self) -> List[User]:
        return [self._to_user(doc) for doc in self._collection.find({})]

    def clear(self) -> None:
        self._collection.delete_many({})

    def close(self) -> None:
        self._collection.database.client.close()


class MongoTodoRepository(TodoRepository):
    """TodoRepository backed by a MongoDB collection."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    @staticmethod
    def _to_todo(doc: Mapping[str, Any]) -> Todo:
        return Todo(
            id=TodoId.from_object_id(doc[_F.id]),
            email=doc[_F.email],
            title=doc[_F.title],
            completed=bool(doc.get(_F.completed, False)),
            created_at=doc[_F.created_at],
        )

    @staticmethod
    def _filter(email: str) -> Dict[str, Any]:
        return {_F.email: email} if email else {}

    def list(self, email: str = "") -> List[Todo]:
        cursor = self._collection.find(self._filter(email)).sort(_F.created_at, ASCENDING)
        return [self._to_todo(doc) for doc in cursor]

    def create(self, todo: Todo) -> Todo:
        doc: Dict[str, Any] = {
            _F.email: todo.email,
            _F.title: todo.title,
            _F.completed: todo.completed,
            _F.created_at: todo.created_at,
        }
        if todo.id is not None:
            doc[_F.id] = todo.id.object_id
        result = self._collection.insert_one(doc)
        return replace(todo, id=TodoId.from_object_id(result.inserted_id))

    def update(self, todo_id: TodoId, update: TodoUpdate) -> Todo:
        changes: Dict[str, Any] = {}
        if update.title is not None:
            changes[_F.title] = update.title
        if update.completed is not None:
            changes[_F.completed] = update.completed

        query = {_F.id: todo_id.object_id}
        if changes:
            doc = self._collection.find_one_and_update(
                query,
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        else:
            # $set with an empty document is rejected by the server
            doc = self._collection.find_one(query)
        if doc is None:
            raise NotFoundError("todo not found")
        return self._to_todo(doc)

    def delete(self, todo_id: TodoId) -> None:
        result = self._collection.delete_one({_F.id: todo_id.object_id})
        if result.deleted_count == 0:
            raise NotFoundError("todo not found")

    def clear(self, email: str = "") -> None:
        self._collection.delete_many(self._filter(email))

    def close(self) -> None:
        self._collection.database.client.close()


# PUBLIC_INTERFACE
def build_mongo_repositories(settings: Settings) -> Tuple[MongoUserRepository, MongoTodoRepository]:
    """Connect, ensure indexes and return repositories over the configured database."""
    client = connect_mongo(settings.mongo_uri, settings.mongo_timeout_ms)
    db = client[settings.mongo_db]
    try:
        ensure_indexes(db)
    except PyMongoError as exc:
        client.close()
        raise StoreError("could not prepare MongoDB indexes") from exc
    return MongoUserRepository(db[_F.users]), MongoTodoRepository(db[_F.todos])
