import pytest

from jobready import career_chat
from jobready.errors import GenerationError, NotFoundError

from .conftest import FailingGateway, ScriptedGateway


def test_start_chat_is_empty(store):
    session = career_chat.start_chat(store, "u1")
    assert session["messages"] == []
    assert session["title"] == "Career Chat"


def test_messages_accumulate_in_pairs(store, gateway):
    session = career_chat.start_chat(store, "u1")
    session, reply = career_chat.send_message(store, gateway, session["id"],
                                              "What remote jobs can I do as a beginner?")
    assert [m["role"] for m in session["messages"]] == ["user", "assistant"]
    assert session["messages"][0]["content"] == "What remote jobs can I do as a beginner?"
    assert session["messages"][1]["content"] == reply
    first_two = session["messages"]

    session, _ = career_chat.send_message(store, gateway, session["id"], "Which skills first?")
    assert len(session["messages"]) == 4
    assert session["messages"][:2] == first_two
    assert [m["role"] for m in session["messages"]] == ["user", "assistant", "user", "assistant"]
    assert all(m["timestamp"] for m in session["messages"])


def test_gateway_sees_prior_transcript(store):
    gateway = ScriptedGateway()
    session = career_chat.start_chat(store, "u1")
    career_chat.send_message(store, gateway, session["id"], "one")
    career_chat.send_message(store, gateway, session["id"], "two")
    message, history = gateway.calls[1]
    assert message == "two"
    assert [m["content"] for m in history] == ["one", "advice #1"]


def test_unknown_chat_session(store, gateway):
    with pytest.raises(NotFoundError):
        career_chat.send_message(store, gateway, 12, "hello")
    with pytest.raises(NotFoundError):
        career_chat.get_chat(store, 12)


def test_generation_failure_appends_nothing(store):
    session = career_chat.start_chat(store, "u1")
    with pytest.raises(GenerationError):
        career_chat.send_message(store, FailingGateway(), session["id"], "hello")
    assert store.get_chat_session(session["id"])["messages"] == []


def test_list_user_chats(store):
    career_chat.start_chat(store, "u1", "Remote work")
    career_chat.start_chat(store, "u2")
    assert [s["title"] for s in career_chat.list_user_chats(store, "u1")] == ["Remote work"]
