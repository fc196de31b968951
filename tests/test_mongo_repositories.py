from datetime import datetime, timezone
from unittest import mock

import pytest
from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from tasktracker import db
from tasktracker.errors import AlreadyExistsError, NotFoundError, StoreError
from tasktracker.models import Todo, TodoId, TodoUpdate, User
from tasktracker.todo_service import TodoService
from tasktracker.user_service import UserService

NOW = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def collection():
    return mock.MagicMock(name="collection")


class TestMongoUserRepository:
    def test_find_by_email(self, collection):
        collection.find_one.return_value = {"_id": ObjectId(), "email": "user@example.com", "password": "secret"}
        user = db.MongoUserRepository(collection).find_by_email("user@example.com")
        assert user == User(email="user@example.com", password="secret")
        collection.find_one.assert_called_once_with({"email": "user@example.com"})

    def test_find_by_email_not_found(self, collection):
        collection.find_one.return_value = None
        with pytest.raises(NotFoundError):
            db.MongoUserRepository(collection).find_by_email("missing@example.com")

    def test_insert_and_list(self, collection):
        repo = db.MongoUserRepository(collection)
        repo.insert(User(email="alice@example.com", password="secret"))
        collection.insert_one.assert_called_once_with({"email": "alice@example.com", "password": "secret"})

        collection.find.return_value = [
            {"email": "alice@example.com", "password": "secret"},
            {"email": "bob@example.com", "password": "hidden"},
        ]
        assert [u.email for u in repo.list()] == ["alice@example.com", "bob@example.com"]

    def test_duplicate_key_maps_to_already_exists(self, collection):
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        with pytest.raises(AlreadyExistsError):
            db.MongoUserRepository(collection).insert(User(email="a@b.c", password="x"))

    def test_clear(self, collection):
        db.MongoUserRepository(collection).clear()
        collection.delete_many.assert_called_once_with({})

    def test_driver_error_surfaces_as_store_error_through_service(self, collection):
        collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        service = UserService(db.MongoUserRepository(collection))
        with pytest.raises(StoreError) as exc_info:
            service.login("alice@example.com", "secret")
        assert isinstance(exc_info.value.__cause__, ServerSelectionTimeoutError)


class TestMongoTodoRepository:
    def test_create_returns_inserted_id(self, collection):
        oid = ObjectId()
        collection.insert_one.return_value = mock.Mock(inserted_id=oid)
        created = db.MongoTodoRepository(collection).create(
            Todo(email="user@example.com", title="Test task", created_at=NOW)
        )
        assert created.id == TodoId.from_object_id(oid)
        collection.insert_one.assert_called_once_with(
            {"email": "user@example.com", "title": "Test task", "completed": False, "createdAt": NOW}
        )

    def test_list_filters_and_sorts(self, collection):
        oid = ObjectId()
        cursor = collection.find.return_value
        cursor.sort.return_value = [
            {"_id": oid, "email": "user@example.com", "title": "Sample", "completed": False, "createdAt": NOW}
        ]
        todos = db.MongoTodoRepository(collection).list("user@example.com")

        collection.find.assert_called_once_with({"email": "user@example.com"})
        cursor.sort.assert_called_once_with("createdAt", ASCENDING)
        assert todos == [
            Todo(id=TodoId.from_object_id(oid), email="user@example.com", title="Sample", created_at=NOW)
        ]

    def test_list_without_filter(self, collection):
        collection.find.return_value.sort.return_value = []
        assert db.MongoTodoRepository(collection).list("") == []
        collection.find.assert_called_once_with({})

    def test_update_returns_modified_document(self, collection):
        todo_id = TodoId.new()
        collection.find_one_and_update.return_value = {
            "_id": todo_id.object_id,
            "email": "user@example.com",
            "title": "Updated",
            "completed": True,
            "createdAt": NOW,
        }
        updated = db.MongoTodoRepository(collection).update(todo_id, TodoUpdate(title="Updated", completed=True))

        assert updated.id == todo_id
        assert updated.completed is True
        collection.find_one_and_update.assert_called_once_with(
            {"_id": todo_id.object_id},
            {"$set": {"title": "Updated", "completed": True}},
            return_document=ReturnDocument.AFTER,
        )

    def test_update_only_sets_supplied_fields(self, collection):
        todo_id = TodoId.new()
        collection.find_one_and_update.return_value = {
            "_id": todo_id.object_id, "email": "u@x", "title": "T", "completed": True, "createdAt": NOW,
        }
        db.MongoTodoRepository(collection).update(todo_id, TodoUpdate(completed=True))
        args, _ = collection.find_one_and_update.call_args
        assert args[1] == {"$set": {"completed": True}}

    def test_update_without_fields_reads_current_document(self, collection):
        todo_id = TodoId.new()
        collection.find_one.return_value = {
            "_id": todo_id.object_id, "email": "u@x", "title": "T", "completed": False, "createdAt": NOW,
        }
        current = db.MongoTodoRepository(collection).update(todo_id, TodoUpdate())

        assert current.title == "T"
        collection.find_one_and_update.assert_not_called()
        collection.find_one.assert_called_once_with({"_id": todo_id.object_id})

    def test_update_without_fields_missing(self, collection):
        collection.find_one.return_value = None
        with pytest.raises(NotFoundError):
            db.MongoTodoRepository(collection).update(TodoId.new(), TodoUpdate())

    def test_update_missing(self, collection):
        collection.find_one_and_update.return_value = None
        with pytest.raises(NotFoundError):
            db.MongoTodoRepository(collection).update(TodoId.new(), TodoUpdate(completed=True))

    def test_delete(self, collection):
        todo_id = TodoId.new()
        collection.delete_one.return_value = mock.Mock(deleted_count=1)
        db.MongoTodoRepository(collection).delete(todo_id)
        collection.delete_one.assert_called_once_with({"_id": todo_id.object_id})

    def test_delete_missing(self, collection):
        collection.delete_one.return_value = mock.Mock(deleted_count=0)
        with pytest.raises(NotFoundError):
            db.MongoTodoRepository(collection).delete(TodoId.new())

    def test_clear_by_email(self, collection):
        db.MongoTodoRepository(collection).clear("user@example.com")
        collection.delete_many.assert_called_once_with({"email": "user@example.com"})

    def test_service_round_trip_uses_hex_id(self, collection):
        oid = ObjectId()
        collection.insert_one.return_value = mock.Mock(inserted_id=oid)
        collection.delete_one.return_value = mock.Mock(deleted_count=1)
        service = TodoService(db.MongoTodoRepository(collection), now=lambda: NOW)

        created = service.create("user@example.com", "Task")
        assert created.id == str(oid)
        service.delete(created.id)
        collection.delete_one.assert_called_once_with({"_id": oid})


class TestConnectMongo:
    def test_unreachable_server_raises_store_error_and_closes(self):
        with mock.patch.object(db, "MongoClient") as client_cls:
            client = client_cls.return_value
            client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
            with pytest.raises(StoreError):
                db.connect_mongo("mongodb://localhost:27099", timeout_ms=50)
            client.close.assert_called_once_with()
            _, kwargs = client_cls.call_args
            assert kwargs["serverSelectionTimeoutMS"] == 50
            assert kwargs["timeoutMS"] == 50

    def test_success_pings(self):
        with mock.patch.object(db, "MongoClient") as client_cls:
            client = db.connect_mongo("mongodb://localhost:27017")
            assert client is client_cls.return_value
            client.admin.command.assert_called_once_with("ping")

    def test_ensure_indexes(self):
        database = mock.MagicMock()
        db.ensure_indexes(database)
        database["users"].create_index.assert_any_call("email", unique=True)
        database["todos"].create_index.assert_any_call([("email", ASCENDING), ("createdAt", ASCENDING)])
