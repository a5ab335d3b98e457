# career_chat.py
import logging
from typing import Any, Dict, List, Tuple

from .errors import NotFoundError
from .helpers import _now
from .llm_client import CompletionGateway
from .storage import Store

logger = logging.getLogger(__name__)


def start_chat(store: Store, user_id: str, title: str = "Career Chat") -> Dict[str, Any]:
    session = store.create_chat_session({"userId": user_id, "title": title, "messages": []})
    logger.info("Chat session id=%s started for user=%s", session["id"], user_id)
    return session


def get_chat(store: Store, session_id: int) -> Dict[str, Any]:
    session = store.get_chat_session(session_id)
    if session is None:
        raise NotFoundError("Chat session not found")
    return session


def list_user_chats(store: Store, user_id: str) -> List[Dict[str, Any]]:
    return store.list_chat_sessions(user_id)


def send_message(store: Store, gateway: CompletionGateway, session_id: int,
                 text: str) -> Tuple[Dict[str, Any], str]:
    """Append one user/assistant pair to the transcript and return it with the reply."""
    session = get_chat(store, session_id)
    history = session.get("messages") or []

    user_message = {"role": "user", "content": text, "timestamp": _now()}
    reply = gateway.generate_career_advice(text, history)
    assistant_message = {"role": "assistant", "content": reply, "timestamp": _now()}

    updated = store.append_chat_messages(session_id, [user_message, assistant_message])
    if updated is None:
        raise NotFoundError("Chat session not found")
    logger.info("Chat session id=%s now has %d messages", session_id, len(updated["messages"]))
    return updated, reply
