import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConflictError, GenerationError, InvalidIndexError, NotFoundError
from .llm_client import DEFAULT_QUESTION_COUNT, CompletionGateway
from .storage import Store

logger = logging.getLogger(__name__)


def overall_score(questions: List[Dict[str, Any]]) -> Optional[int]:
    """Mean of the per-question scores, rounded half up; None until all are answered."""
    if not questions or not all(q.get("answer") for q in questions):
        return None
    mean = sum(q.get("score") or 0 for q in questions) / len(questions)
    return int(math.floor(mean + 0.5))


def start_interview(store: Store, gateway: CompletionGateway, job_title: str, user_id: str,
                    count: int = DEFAULT_QUESTION_COUNT) -> Dict[str, Any]:
    generated = gateway.generate_interview_questions(job_title, count)
    if not generated:
        raise GenerationError("Failed to generate interview questions", detail="no questions returned")
    questions = [
        {"question": q["question"], "answer": None, "feedback": None, "score": None}
        for q in generated
    ]
    session = store.create_interview_session({
        "userId": user_id,
        "jobTitle": job_title,
        "questions": questions,
        "overallScore": None,
        "completed": False,
    })
    logger.info("Interview session id=%s started for %r with %d questions",
                session["id"], job_title, len(questions))
    return session


def get_interview(store: Store, session_id: int) -> Dict[str, Any]:
    session = store.get_interview_session(session_id)
    if session is None:
        raise NotFoundError("Interview session not found")
    return session


def list_user_interviews(store: Store, user_id: str) -> List[Dict[str, Any]]:
    return store.list_interview_sessions(user_id)


def submit_answer(store: Store, gateway: CompletionGateway, session_id: int,
                  question_index: int, answer: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Score one answer and record it on the session.

    Returns the updated session and the raw feedback. The write is a
    compare-and-set on the version read here, so a concurrent submission to
    the same session makes the later writer fail with ConflictError instead
    of silently dropping the other answer.
    """
    session = get_interview(store, session_id)
    questions = session.get("questions") or []
    if not 0 <= question_index < len(questions):
        raise InvalidIndexError("Invalid question index",
                                detail=f"index {question_index} outside 0..{len(questions) - 1}")
    if session.get("completed"):
        raise ConflictError("Interview session is already completed")

    question = questions[question_index]
    feedback = gateway.evaluate_answer(question["question"], answer, session["jobTitle"])

    questions[question_index] = {
        **question,
        "answer": answer,
        "feedback": feedback["feedback"],
        "score": feedback["score"],
    }
    score = overall_score(questions)
    completed = score is not None

    updated = store.update_interview_session(
        session_id,
        {"questions": questions, "overallScore": score, "completed": completed},
        expected_version=session["version"],
    )
    if updated is None:
        raise NotFoundError("Interview session not found")

    logger.info("Session id=%s question %d scored %s", session_id, question_index, feedback["score"])
    if completed:
        logger.info("Session id=%s completed with overall score %s", session_id, score)
    return updated, feedback
