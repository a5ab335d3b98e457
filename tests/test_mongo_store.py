from unittest import mock

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from jobready.errors import ConflictError, StorageError
from jobready.mongo_store import MongoStore


@pytest.fixture
def db():
    return mock.MagicMock()


def test_create_uses_counter_sequence(db):
    db.counters.find_one_and_update.return_value = {"_id": "cvs", "seq": 4}
    cv = MongoStore(db).create_cv({"userId": "u1"})
    assert cv["id"] == 4
    assert cv["version"] == 1
    inserted = db.__getitem__.return_value.insert_one.call_args[0][0]
    assert inserted["userId"] == "u1"
    assert "_id" not in cv


def test_backend_failure_raises_storage_error(db):
    db.counters.find_one_and_update.side_effect = ServerSelectionTimeoutError("no servers")
    with pytest.raises(StorageError) as exc:
        MongoStore(db).create_chat_session({"userId": "u1", "messages": []})
    assert exc.value.status_code == 503


def test_lookup_failure_is_not_masked(db):
    db.__getitem__.return_value.find_one.side_effect = OperationFailure("boom")
    with pytest.raises(StorageError):
        MongoStore(db).get_interview_session(1)


def test_stale_version_raises_conflict(db):
    coll = db.__getitem__.return_value
    coll.find_one_and_update.return_value = None
    coll.find_one.return_value = {"id": 1, "version": 3}
    with pytest.raises(ConflictError):
        MongoStore(db).update_interview_session(1, {"completed": True}, expected_version=2)
    query = coll.find_one_and_update.call_args[0][0]
    assert query == {"id": 1, "version": 2}


def test_missing_session_update_returns_none(db):
    coll = db.__getitem__.return_value
    coll.find_one_and_update.return_value = None
    coll.find_one.return_value = None
    assert MongoStore(db).update_interview_session(7, {"completed": True}, expected_version=1) is None


def test_append_is_single_push(db):
    coll = db.__getitem__.return_value
    coll.find_one_and_update.return_value = {"id": 1, "messages": []}
    MongoStore(db).append_chat_messages(1, [{"role": "user", "content": "hi"}])
    update = coll.find_one_and_update.call_args[0][1]
    assert update["$push"] == {"messages": {"$each": [{"role": "user", "content": "hi"}]}}
    assert update["$inc"] == {"version": 1}
