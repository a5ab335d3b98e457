from __future__ import annotations
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .errors import ConflictError
from .helpers import _copy, _now

logger = logging.getLogger(__name__)

ENTITIES = ("users", "cvs", "interview_sessions", "chat_sessions")


class Store(ABC):
    """Persistence for users, CVs, interview sessions and chat sessions.

    Lookups by an unknown id return None. Backend failures raise StorageError.
    Every created record gets an integer ``id`` from a per-entity sequence,
    ``createdAt``/``updatedAt`` timestamps and a ``version`` bumped on update.
    """

    name = "abstract"

    # -------- Users --------
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def upsert_user(self, user: Dict[str, Any]) -> Dict[str, Any]: ...

    # -------- CVs --------
    @abstractmethod
    def create_cv(self, data: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def get_cv(self, cv_id: int) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def update_cv(self, cv_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def list_cvs(self, user_id: str) -> List[Dict[str, Any]]: ...

    # -------- Interview sessions --------
    @abstractmethod
    def create_interview_session(self, data: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def get_interview_session(self, session_id: int) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def update_interview_session(self, session_id: int, fields: Dict[str, Any],
                                 expected_version: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Apply ``fields``; with ``expected_version`` only if the stored version matches.

        A stale ``expected_version`` raises ConflictError.
        """

    @abstractmethod
    def list_interview_sessions(self, user_id: str) -> List[Dict[str, Any]]: ...

    # -------- Chat sessions --------
    @abstractmethod
    def create_chat_session(self, data: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def get_chat_session(self, session_id: int) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def append_chat_messages(self, session_id: int, messages: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Atomically append ``messages`` to the stored transcript."""

    @abstractmethod
    def list_chat_sessions(self, user_id: str) -> List[Dict[str, Any]]: ...


def new_record(record_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    now = _now()
    doc = _copy(data)
    doc.update({"id": record_id, "createdAt": now, "updatedAt": now, "version": 1})
    return doc


class MemoryStore(Store):
    """In-process store; one instance per app, no module-level state."""

    name = "memory"

    def __init__(self):
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict[Any, Dict[str, Any]]] = {name: {} for name in ENTITIES}
        self._seq: Dict[str, int] = {name: 0 for name in ENTITIES}

    def _create(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._seq[table] += 1
            doc = new_record(self._seq[table], data)
            self._tables[table][doc["id"]] = doc
            return _copy(doc)

    def _get(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._tables[table].get(record_id)
            return _copy(doc) if doc is not None else None

    def _update(self, table: str, record_id: Any, fields: Dict[str, Any],
                expected_version: Optional[int] = None) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._tables[table].get(record_id)
            if doc is None:
                return None
            if expected_version is not None and doc["version"] != expected_version:
                raise ConflictError(
                    "Session was modified concurrently; please retry",
                    detail=f"expected version {expected_version}, found {doc['version']}",
                )
            doc.update(_copy(fields))
            doc["updatedAt"] = _now()
            doc["version"] += 1
            return _copy(doc)

    def _list(self, table: str, user_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [_copy(d) for d in self._tables[table].values() if d.get("userId") == user_id]

    # -------- Users --------
    def get_user(self, user_id):
        return self._get("users", user_id)

    def upsert_user(self, user):
        now = _now()
        with self._lock:
            doc = self._tables["users"].get(user["id"])
            if doc is None:
                doc = {"createdAt": now, "version": 0}
                self._tables["users"][user["id"]] = doc
            doc.update(_copy(user))
            doc["updatedAt"] = now
            doc["version"] += 1
            return _copy(doc)

    # -------- CVs --------
    def create_cv(self, data):
        return self._create("cvs", data)

    def get_cv(self, cv_id):
        return self._get("cvs", cv_id)

    def update_cv(self, cv_id, fields):
        return self._update("cvs", cv_id, fields)

    def list_cvs(self, user_id):
        return self._list("cvs", user_id)

    # -------- Interview sessions --------
    def create_interview_session(self, data):
        return self._create("interview_sessions", data)

    def get_interview_session(self, session_id):
        return self._get("interview_sessions", session_id)

    def update_interview_session(self, session_id, fields, expected_version=None):
        return self._update("interview_sessions", session_id, fields, expected_version)

    def list_interview_sessions(self, user_id):
        return self._list("interview_sessions", user_id)

    # -------- Chat sessions --------
    def create_chat_session(self, data):
        return self._create("chat_sessions", data)

    def get_chat_session(self, session_id):
        return self._get("chat_sessions", session_id)

    def append_chat_messages(self, session_id, messages):
        with self._lock:
            doc = self._tables["chat_sessions"].get(session_id)
            if doc is None:
                return None
            doc.setdefault("messages", []).extend(_copy(messages))
            doc["updatedAt"] = _now()
            doc["version"] += 1
            return _copy(doc)

    def list_chat_sessions(self, user_id):
        return self._list("chat_sessions", user_id)


def build_store(config) -> Store:
    backend = (config.get("STORAGE_BACKEND") or "memory").lower()
    if backend == "mongo":
        from .mongo_store import MongoStore
        logger.info("Using MongoDB store at db=%s", config.get("MONGO_DB"))
        return MongoStore.from_uri(config["MONGO_URI"], config["MONGO_DB"])
    if backend != "memory":
        raise RuntimeError(f"Unknown STORAGE_BACKEND: {backend!r}")
    logger.info("Using in-memory store")
    return MemoryStore()
