# cv_builder.py
import logging
from typing import Any, Dict, List

from .errors import StorageError
from .llm_client import CompletionGateway
from .storage import Store

logger = logging.getLogger(__name__)

CV_DATA_FIELDS = ("fullName", "email", "phone", "location", "summary", "skills", "experience", "education")


def generate_cv(store: Store, gateway: CompletionGateway, record: Dict[str, Any]) -> Dict[str, Any]:
    """Generate HTML for a validated CV, store the CV and attach the HTML.

    Generation runs before anything is written, so a GenerationError leaves
    no CV behind. The record is created with ``generatedHtml`` set to None
    and the HTML is attached by a single update.
    """
    cv_data = {k: record.get(k) for k in CV_DATA_FIELDS if record.get(k)}
    html = gateway.generate_cv_html(cv_data)

    cv = store.create_cv({**record, "generatedHtml": None})
    logger.info("Created CV id=%s for user=%s", cv["id"], cv["userId"])

    updated = store.update_cv(cv["id"], {"generatedHtml": html})
    if updated is None:
        raise StorageError("CV disappeared before its HTML could be attached", detail=f"cv id {cv['id']}")
    logger.info("Attached generated HTML to CV id=%s (%d chars)", cv["id"], len(html))
    return updated


def list_user_cvs(store: Store, user_id: str) -> List[Dict[str, Any]]:
    return store.list_cvs(user_id)
