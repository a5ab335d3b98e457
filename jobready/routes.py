from __future__ import annotations
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from . import career_chat, cv_builder, interviewer
from .auth import current_user_id
from .extensions import get_gateway, get_store, limiter
from .validators import (
    validate_answer,
    validate_chat_message,
    validate_chat_start,
    validate_cv,
    validate_interview_start,
)

api_bp = Blueprint("api", __name__)


def _ai_limit() -> str:
    return current_app.config["AI_RATE_LIMIT"]


def _json_body() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


@api_bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ai": get_gateway().name,
        "storage": get_store().name,
    })


# ------------------------------
# CV Builder
# ------------------------------
@api_bp.post("/cv/generate")
@limiter.limit(_ai_limit)
def cv_generate():
    record = validate_cv(_json_body(), current_user_id())
    cv = cv_builder.generate_cv(get_store(), get_gateway(), record)
    return jsonify(cv)


@api_bp.get("/cv/<user_id>")
def cv_list(user_id: str):
    return jsonify(cv_builder.list_user_cvs(get_store(), user_id))


# ------------------------------
# Interview Trainer
# ------------------------------
@api_bp.post("/interview/start")
@limiter.limit(_ai_limit)
def interview_start():
    data = validate_interview_start(_json_body(), current_user_id())
    session = interviewer.start_interview(
        get_store(), get_gateway(), data["jobTitle"], data["userId"],
        count=current_app.config["INTERVIEW_QUESTION_COUNT"],
    )
    return jsonify(session)


@api_bp.post("/interview/<int:session_id>/answer")
@limiter.limit(_ai_limit)
def interview_answer(session_id: int):
    question_index, answer = validate_answer(_json_body())
    session, feedback = interviewer.submit_answer(
        get_store(), get_gateway(), session_id, question_index, answer,
    )
    return jsonify({"session": session, "feedback": feedback})


@api_bp.get("/interview/<int:session_id>")
def interview_get(session_id: int):
    return jsonify(interviewer.get_interview(get_store(), session_id))


@api_bp.get("/interview/user/<user_id>")
def interview_list(user_id: str):
    return jsonify(interviewer.list_user_interviews(get_store(), user_id))


# ------------------------------
# Career Guide Chat
# ------------------------------
@api_bp.post("/chat/start")
def chat_start():
    data = validate_chat_start(_json_body(), current_user_id())
    return jsonify(career_chat.start_chat(get_store(), data["userId"], data["title"]))


@api_bp.post("/chat/<int:session_id>/message")
@limiter.limit(_ai_limit)
def chat_message(session_id: int):
    message = validate_chat_message(_json_body())
    session, reply = career_chat.send_message(get_store(), get_gateway(), session_id, message)
    return jsonify({"session": session, "response": reply})


@api_bp.get("/chat/<int:session_id>")
def chat_get(session_id: int):
    return jsonify(career_chat.get_chat(get_store(), session_id))


@api_bp.get("/chat/user/<user_id>")
def chat_list(user_id: str):
    return jsonify(career_chat.list_user_chats(get_store(), user_id))
