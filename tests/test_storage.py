import pytest

from jobready.config import TestConfig
from jobready.errors import ConflictError
from jobready.storage import MemoryStore, build_store


def test_ids_are_per_entity_sequences(store):
    cv = store.create_cv({"userId": "u1", "fullName": "Ann Lee"})
    interview = store.create_interview_session({"userId": "u1", "jobTitle": "Chef", "questions": []})
    chat = store.create_chat_session({"userId": "u1", "messages": []})
    second_cv = store.create_cv({"userId": "u1", "fullName": "Ann Lee"})
    assert (cv["id"], interview["id"], chat["id"], second_cv["id"]) == (1, 1, 1, 2)


def test_separate_stores_do_not_share_state():
    a, b = MemoryStore(), MemoryStore()
    a.create_cv({"userId": "u1"})
    assert b.get_cv(1) is None
    assert b.create_cv({"userId": "u1"})["id"] == 1


def test_round_trip_returns_last_written_state(store):
    cv = store.create_cv({"userId": "u1", "fullName": "Ann Lee", "generatedHtml": None})
    assert store.get_cv(cv["id"]) == cv
    updated = store.update_cv(cv["id"], {"generatedHtml": "<p>hi</p>"})
    assert updated["version"] == 2
    assert store.get_cv(cv["id"]) == updated


def test_unknown_ids_return_none(store):
    assert store.get_cv(99) is None
    assert store.update_cv(99, {"generatedHtml": "x"}) is None
    assert store.get_interview_session(99) is None
    assert store.update_interview_session(99, {"completed": True}, expected_version=1) is None
    assert store.get_chat_session(99) is None
    assert store.append_chat_messages(99, [{"role": "user", "content": "hi"}]) is None
    assert store.get_user("nobody") is None


def test_returned_records_are_copies(store):
    session = store.create_interview_session({"userId": "u1", "jobTitle": "Chef",
                                              "questions": [{"question": "Why?", "answer": None}]})
    session["questions"][0]["answer"] = "tampered"
    assert store.get_interview_session(session["id"])["questions"][0]["answer"] is None


def test_list_by_user(store):
    store.create_chat_session({"userId": "u1", "messages": []})
    store.create_chat_session({"userId": "u2", "messages": []})
    store.create_chat_session({"userId": "u1", "messages": []})
    assert [s["id"] for s in store.list_chat_sessions("u1")] == [1, 3]
    assert store.list_cvs("u1") == []


def test_compare_and_set(store):
    session = store.create_interview_session({"userId": "u1", "jobTitle": "Chef", "questions": []})
    first = store.update_interview_session(session["id"], {"overallScore": 5}, expected_version=1)
    assert first["version"] == 2
    with pytest.raises(ConflictError):
        store.update_interview_session(session["id"], {"overallScore": 9}, expected_version=1)
    assert store.get_interview_session(session["id"])["overallScore"] == 5


def test_append_chat_messages(store):
    chat = store.create_chat_session({"userId": "u1", "messages": []})
    store.append_chat_messages(chat["id"], [{"role": "user", "content": "a"}])
    updated = store.append_chat_messages(chat["id"], [{"role": "assistant", "content": "b"}])
    assert [m["content"] for m in updated["messages"]] == ["a", "b"]


def test_upsert_user(store):
    created = store.upsert_user({"id": "g-1", "email": "a@example.com", "firstName": "Ann"})
    updated = store.upsert_user({"id": "g-1", "email": "a@example.com", "firstName": "Annie"})
    assert updated["createdAt"] == created["createdAt"]
    assert store.get_user("g-1")["firstName"] == "Annie"


def test_build_store():
    assert isinstance(build_store({"STORAGE_BACKEND": TestConfig.STORAGE_BACKEND}), MemoryStore)
    with pytest.raises(RuntimeError):
        build_store({"STORAGE_BACKEND": "sqlite"})
