# helpers.py
import copy
from datetime import datetime, timezone
from typing import Any


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _snippet(text: str, size: int = 80) -> str:
    text = (text or "").replace("\n", " ")
    return text if len(text) <= size else text[:size] + "..."


def _copy(doc: Any) -> Any:
    return copy.deepcopy(doc)
