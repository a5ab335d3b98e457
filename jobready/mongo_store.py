# mongo_store.py
from __future__ import annotations
import functools
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .errors import ConflictError, StorageError
from .helpers import _now
from .storage import Store, new_record

logger = logging.getLogger(__name__)

NO_ID = {"_id": False}


def _storage_errors(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except PyMongoError as e:
            logger.error("MongoDB %s failed: %s", fn.__name__, e)
            raise StorageError("Storage unavailable", detail=str(e)) from e
    return wrapper


class MongoStore(Store):
    name = "mongo"

    def __init__(self, db):
        self._db = db
        self._indexed = False

    @classmethod
    def from_uri(cls, uri: str, db_name: str) -> "MongoStore":
        client = MongoClient(uri, serverSelectionTimeoutMS=5000)
        return cls(client[db_name])

    def _get_db(self):
        if self._indexed:
            return self._db
        # Ensure indexes once
        self._db.users.create_index([("id", ASCENDING)], unique=True, name="uniq_user_id")
        for coll in ("cvs", "interview_sessions", "chat_sessions"):
            self._db[coll].create_index([("id", ASCENDING)], unique=True, name=f"uniq_{coll}_id")
            self._db[coll].create_index([("userId", ASCENDING)], name=f"{coll}_user")
        self._indexed = True
        return self._db

    def _next_id(self, name: str) -> int:
        counter = self._get_db().counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    def _create(self, coll: str, data: Dict[str, Any]) -> Dict[str, Any]:
        doc = new_record(self._next_id(coll), data)
        self._get_db()[coll].insert_one(dict(doc))
        return doc

    def _get(self, coll: str, record_id: Any) -> Optional[Dict[str, Any]]:
        return self._get_db()[coll].find_one({"id": record_id}, NO_ID)

    def _update(self, coll: str, record_id: Any, update: Dict[str, Any],
                expected_version: Optional[int] = None) -> Optional[Dict[str, Any]]:
        query: Dict[str, Any] = {"id": record_id}
        if expected_version is not None:
            query["version"] = expected_version
        update.setdefault("$set", {})["updatedAt"] = _now()
        update["$inc"] = {"version": 1}
        doc = self._get_db()[coll].find_one_and_update(
            query, update, projection=NO_ID, return_document=ReturnDocument.AFTER,
        )
        if doc is None and expected_version is not None and self._get(coll, record_id) is not None:
            raise ConflictError("Session was modified concurrently; please retry",
                                detail=f"expected version {expected_version}")
        return doc

    def _list(self, coll: str, user_id: str) -> List[Dict[str, Any]]:
        cur = self._get_db()[coll].find({"userId": user_id}, NO_ID).sort("id", ASCENDING)
        return list(cur)

    # -------- Users --------
    @_storage_errors
    def get_user(self, user_id):
        return self._get("users", user_id)

    @_storage_errors
    def upsert_user(self, user):
        now = _now()
        fields = {k: v for k, v in user.items() if k not in ("createdAt", "version")}
        fields["updatedAt"] = now
        return self._get_db().users.find_one_and_update(
            {"id": user["id"]},
            {"$set": fields, "$setOnInsert": {"createdAt": now}, "$inc": {"version": 1}},
            upsert=True,
            projection=NO_ID,
            return_document=ReturnDocument.AFTER,
        )

    # -------- CVs --------
    @_storage_errors
    def create_cv(self, data):
        return self._create("cvs", data)

    @_storage_errors
    def get_cv(self, cv_id):
        return self._get("cvs", cv_id)

    @_storage_errors
    def update_cv(self, cv_id, fields):
        return self._update("cvs", cv_id, {"$set": dict(fields)})

    @_storage_errors
    def list_cvs(self, user_id):
        return self._list("cvs", user_id)

    # -------- Interview sessions --------
    @_storage_errors
    def create_interview_session(self, data):
        return self._create("interview_sessions", data)

    @_storage_errors
    def get_interview_session(self, session_id):
        return self._get("interview_sessions", session_id)

    @_storage_errors
    def update_interview_session(self, session_id, fields, expected_version=None):
        return self._update("interview_sessions", session_id, {"$set": dict(fields)}, expected_version)

    @_storage_errors
    def list_interview_sessions(self, user_id):
        return self._list("interview_sessions", user_id)

    # -------- Chat sessions --------
    @_storage_errors
    def create_chat_session(self, data):
        return self._create("chat_sessions", data)

    @_storage_errors
    def get_chat_session(self, session_id):
        return self._get("chat_sessions", session_id)

    @_storage_errors
    def append_chat_messages(self, session_id, messages):
        return self._update("chat_sessions", session_id, {"$push": {"messages": {"$each": list(messages)}}})

    @_storage_errors
    def list_chat_sessions(self, user_id):
        return self._list("chat_sessions", user_id)
