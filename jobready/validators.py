# validators.py
from __future__ import annotations
import re
from typing import Any, Dict, List, Optional, Tuple

from .errors import ValidationError

EMAIL_RE = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9_'+\-.]*[A-Za-z0-9_+\-]@([A-Za-z0-9][A-Za-z0-9\-]*\.)+[A-Za-z]{2,}$"
)
NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
PHONE_RE = re.compile(r"^[\+]?[0-9\s\-\(\)]{7,15}$")

MIN_SKILLS = 3
DEFAULT_CV_TITLE = "My CV"
DEFAULT_CHAT_TITLE = "Career Chat"


def _text(payload: Dict[str, Any], key: str) -> Optional[str]:
    """Return a stripped string, None when absent or blank.

    Non-string values are passed through so the caller can reject them.
    """
    val = payload.get(key)
    if val is None:
        return None
    if isinstance(val, str):
        val = val.strip()
        return val or None
    return val


def _length_between(val: str, lo: int, hi: int) -> bool:
    return lo <= len(val) <= hi


def _user_id(payload: Dict[str, Any], default_user_id: str, errors: Dict[str, str]) -> str:
    user_id = payload.get("userId")
    if user_id is None or (isinstance(user_id, str) and not user_id.strip()):
        return default_user_id
    if isinstance(user_id, bool) or not isinstance(user_id, (str, int)):
        errors["userId"] = "User id must be a string"
        return default_user_id
    return str(user_id).strip()


def parse_skills(raw: Any) -> Optional[List[str]]:
    """Accept "a, b, c" or ["a", "b", "c"]; return trimmed non-empty entries."""
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        if not all(isinstance(x, str) for x in raw):
            return None
        items = list(raw)
    else:
        return None
    return [s.strip() for s in items if s.strip()]


def validate_cv(payload: Dict[str, Any], default_user_id: str) -> Dict[str, Any]:
    errors: Dict[str, str] = {}

    full_name = _text(payload, "fullName")
    if not isinstance(full_name, str):
        errors["fullName"] = "Full name is required"
    elif len(full_name) < 2:
        errors["fullName"] = "Full name must be at least 2 characters"
    elif len(full_name) > 50:
        errors["fullName"] = "Full name must be less than 50 characters"
    elif not NAME_RE.match(full_name):
        errors["fullName"] = "Full name should only contain letters and spaces"

    email = _text(payload, "email")
    if not isinstance(email, str):
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(email):
        errors["email"] = "Please enter a valid email address"
    elif len(email) < 5:
        errors["email"] = "Email is too short"
    elif len(email) > 100:
        errors["email"] = "Email is too long"

    phone = _text(payload, "phone")
    if phone is not None and not (isinstance(phone, str) and PHONE_RE.match(phone)):
        errors["phone"] = "Please enter a valid phone number"

    location = _text(payload, "location")
    if location is not None and not (isinstance(location, str) and len(location) >= 2):
        errors["location"] = "Location must be at least 2 characters"

    summary = _text(payload, "summary")
    if summary is not None and not (isinstance(summary, str) and _length_between(summary, 50, 500)):
        errors["summary"] = "Summary should be between 50-500 characters for best results"

    skills = parse_skills(payload.get("skills"))
    if skills is None or not skills:
        errors["skills"] = "Please add at least one skill"
    elif len(skills) < MIN_SKILLS:
        errors["skills"] = "Please add at least 3 skills separated by commas"

    experience = _text(payload, "experience")
    if not isinstance(experience, str) or len(experience) < 20:
        errors["experience"] = "Please provide more details about your experience (at least 20 characters)"
    elif len(experience) > 2000:
        errors["experience"] = "Experience description is too long"

    education = _text(payload, "education")
    if not isinstance(education, str) or len(education) < 10:
        errors["education"] = "Please provide your educational background (at least 10 characters)"
    elif len(education) > 1000:
        errors["education"] = "Education description is too long"

    title = _text(payload, "title") or DEFAULT_CV_TITLE
    if not isinstance(title, str) or len(title) > 100:
        errors["title"] = "Title must be a string of at most 100 characters"

    user_id = _user_id(payload, default_user_id, errors)

    if errors:
        raise ValidationError(errors)

    return {
        "userId": user_id,
        "title": title,
        "fullName": full_name,
        "email": email,
        "phone": phone,
        "location": location,
        "summary": summary,
        "skills": skills,
        "experience": experience,
        "education": education,
    }


def validate_interview_start(payload: Dict[str, Any], default_user_id: str) -> Dict[str, Any]:
    errors: Dict[str, str] = {}
    job_title = _text(payload, "jobTitle")
    if not isinstance(job_title, str):
        errors["jobTitle"] = "Job title is required"
    elif len(job_title) > 100:
        errors["jobTitle"] = "Job title is too long"
    user_id = _user_id(payload, default_user_id, errors)
    if errors:
        raise ValidationError(errors)
    return {"jobTitle": job_title, "userId": user_id}


def validate_answer(payload: Dict[str, Any]) -> Tuple[int, str]:
    errors: Dict[str, str] = {}
    index = payload.get("questionIndex")
    # bool is an int subclass; True must not address question 1
    if isinstance(index, bool) or not isinstance(index, int):
        errors["questionIndex"] = "Question index must be an integer"
    answer = _text(payload, "answer")
    if not isinstance(answer, str):
        errors["answer"] = "Answer is required"
    if errors:
        raise ValidationError(errors)
    return index, answer


def validate_chat_start(payload: Dict[str, Any], default_user_id: str) -> Dict[str, Any]:
    errors: Dict[str, str] = {}
    title = _text(payload, "title") or DEFAULT_CHAT_TITLE
    if not isinstance(title, str) or len(title) > 100:
        errors["title"] = "Title must be a string of at most 100 characters"
    user_id = _user_id(payload, default_user_id, errors)
    if errors:
        raise ValidationError(errors)
    return {"userId": user_id, "title": title}


def validate_chat_message(payload: Dict[str, Any]) -> str:
    message = _text(payload, "message")
    if not isinstance(message, str):
        raise ValidationError({"message": "Message is required"})
    return message
