from __future__ import annotations
import json
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup
from openai import OpenAI, OpenAIError

from .config import ai_credential
from .errors import GenerationError
from .helpers import _snippet

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_COUNT = 8
DEFAULT_CONTEXT_MESSAGES = 10
EMPTY_ADVICE_REPLY = "I'm sorry, I couldn't generate a response right now."

CAREER_SYSTEM_PROMPT = (
    "You are a career counselor specializing in helping students and job seekers "
    "in Sri Lanka and developing countries. "
    "Provide practical, encouraging, and actionable career advice. "
    "Focus on remote work opportunities, skill development, and local job market insights. "
    "Be supportive and motivational while being realistic about challenges. "
    "Keep responses concise but helpful."
)

MOCK_ADVICE = [
    "That's a great question! Based on current market trends, I'd recommend focusing on "
    "developing both technical and soft skills. Consider exploring remote work opportunities "
    "which are increasingly available globally.",
    "For career development in Sri Lanka and developing countries, I suggest building a strong "
    "online presence through platforms like LinkedIn and GitHub. Remote work can open up "
    "international opportunities.",
    "Skill development is key to career growth. Consider online courses, certifications, and "
    "practical projects. Focus on in-demand skills like digital marketing, programming, or "
    "data analysis.",
    "The job market is evolving rapidly. Stay updated with industry trends, network actively, "
    "and don't hesitate to apply for positions that stretch your capabilities - growth happens "
    "outside your comfort zone!",
    "Building a professional network is crucial. Attend virtual events, join professional "
    "groups, and engage with industry content online. Many opportunities come through connections.",
]

MOCK_SUGGESTIONS = [
    "Add specific examples from your experience",
    "Quantify your achievements where possible",
    "Connect your answer more directly to the job requirements",
]


def mock_questions(job_title: str) -> List[Dict[str, Any]]:
    return [
        {"question": "Tell me about yourself and your background.",
         "expectedPoints": ["Background summary", "Relevant experience", "Career goals"]},
        {"question": f"What interests you about working as a {job_title}?",
         "expectedPoints": ["Passion for the role", "Understanding of responsibilities", "Career alignment"]},
        {"question": "What are your greatest strengths?",
         "expectedPoints": ["Specific skills", "Examples", "Relevance to role"]},
        {"question": "Describe a challenging situation you faced and how you handled it.",
         "expectedPoints": ["Problem description", "Actions taken", "Results achieved"]},
        {"question": "Where do you see yourself in 5 years?",
         "expectedPoints": ["Career goals", "Growth mindset", "Commitment"]},
        {"question": "Why should we hire you for this position?",
         "expectedPoints": ["Unique value proposition", "Skills match", "Enthusiasm"]},
        {"question": "What are your salary expectations?",
         "expectedPoints": ["Market research", "Flexibility", "Value focus"]},
        {"question": "Do you have any questions for us?",
         "expectedPoints": ["Company culture", "Role expectations", "Growth opportunities"]},
    ]


def escape_email(value: Any) -> Markup:
    """Escape an address for element text, leaving apostrophes as typed."""
    text = str(value or "")
    for char, entity in (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&quot;")):
        text = text.replace(char, entity)
    return Markup(text)


def clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        score = 5
    return max(1, min(10, score))


def parse_json_reply(content: str) -> Dict[str, Any]:
    """Parse a JSON object out of a model reply.

    Some models wrap JSON in markdown fences like ```json ... ``` or append
    commentary after the closing brace; both are tolerated.
    """
    cleaned = (content or "").strip()
    if cleaned.startswith("```"):
        cleaned = "\n".join(cleaned.splitlines()[1:])
    if cleaned.endswith("```"):
        cleaned = "\n".join(cleaned.splitlines()[:-1])
    cleaned = cleaned.strip()

    try:
        data = json.loads(cleaned)
    except ValueError as e:
        logger.info("JSON parse failed (first attempt): %s", e)
        last_brace = cleaned.rfind("}")
        if last_brace == -1:
            raise GenerationError("Model returned malformed JSON", detail=_snippet(content)) from e
        try:
            data = json.loads(cleaned[: last_brace + 1])
        except ValueError as e2:
            raise GenerationError("Model returned malformed JSON", detail=_snippet(content)) from e2

    if not isinstance(data, dict):
        raise GenerationError("Model returned JSON that is not an object", detail=_snippet(content))
    return data


class CompletionGateway(ABC):
    """Produces generated content for CVs, interviews and career chat."""

    name = "abstract"

    @abstractmethod
    def generate_cv_html(self, cv_data: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    def generate_interview_questions(self, job_title: str, count: int = DEFAULT_QUESTION_COUNT) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def evaluate_answer(self, question: str, answer: str, job_title: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def generate_career_advice(self, message: str, history: List[Dict[str, Any]]) -> str:
        ...


class MockGateway(CompletionGateway):
    """Offline stand-in used when no API key is configured."""

    name = "mock"

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)
        self._env = Environment(
            loader=PackageLoader("jobready", "templates"),
            autoescape=select_autoescape(["html"]),
        )
        self._env.filters["email"] = escape_email

    def generate_cv_html(self, cv_data: Dict[str, Any]) -> str:
        return self._env.get_template("cv_mock.html").render(cv=cv_data)

    def generate_interview_questions(self, job_title: str, count: int = DEFAULT_QUESTION_COUNT) -> List[Dict[str, Any]]:
        # the mock list is fixed; count only matters for the live model
        return mock_questions(job_title)

    def evaluate_answer(self, question: str, answer: str, job_title: str) -> Dict[str, Any]:
        score = self._rng.randint(6, 9)
        if score >= 8:
            extra = "Your response was well-structured and demonstrated strong communication skills."
        else:
            extra = "Consider adding more specific examples to strengthen your response."
        return {
            "score": score,
            "feedback": "Good answer! You provided relevant information and showed understanding "
                        "of the role. " + extra,
            "suggestions": list(MOCK_SUGGESTIONS),
        }

    def generate_career_advice(self, message: str, history: List[Dict[str, Any]]) -> str:
        return self._rng.choice(MOCK_ADVICE)


class LiveGateway(CompletionGateway):
    """Calls an OpenAI-compatible chat completions endpoint."""

    name = "live"

    def __init__(self, api_key: str, model: str = "gpt-4o", base_url: Optional[str] = None,
                 timeout: float = 30, context_messages: int = DEFAULT_CONTEXT_MESSAGES,
                 client: Optional[OpenAI] = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.context_messages = context_messages
        self._client = client

    def get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def _complete(self, operation: str, messages: List[Dict[str, str]], **kwargs) -> str:
        prompt_len = sum(len(m.get("content") or "") for m in messages)
        logger.info("Calling LLM for %s, model=%s prompt length=%d", operation, self.model, prompt_len)
        try:
            completion = self.get_client().chat.completions.create(
                model=self.model,
                messages=messages,
                **kwargs,
            )
        except OpenAIError as e:
            logger.warning("LLM call for %s failed: %s", operation, e)
            raise GenerationError(f"Failed to {operation}", detail=str(e)) from e
        if not completion.choices:
            return ""
        content = completion.choices[0].message.content or ""
        logger.debug("LLM response snippet for %s: %s", operation, _snippet(content, 200))
        return content

    def generate_cv_html(self, cv_data: Dict[str, Any]) -> str:
        prompt = (
            "Create a professional HTML CV using the following information. "
            "Use modern, clean styling with Tailwind CSS classes. "
            "Include proper semantic HTML structure. "
            "Make it print-friendly and professional.\n\n"
            "Data: " + json.dumps(cv_data) + "\n\n"
            "Return only the HTML content without any markdown formatting."
        )
        content = self._complete("generate CV", [{"role": "user", "content": prompt}], max_tokens=2000)
        if not content.strip():
            raise GenerationError("Failed to generate CV", detail="empty response")
        return content

    def generate_interview_questions(self, job_title: str, count: int = DEFAULT_QUESTION_COUNT) -> List[Dict[str, Any]]:
        prompt = (
            f"Generate {count} realistic interview questions for a {job_title} position. "
            "Focus on questions commonly asked in entry-level to mid-level positions. "
            "Include a mix of technical, behavioral, and situational questions.\n\n"
            "Return the response as a JSON object with this structure: "
            "{ \"questions\": [ { \"question\": \"Tell me about yourself\", "
            "\"expectedPoints\": [\"Background summary\", \"Relevant experience\", \"Career goals\"] } ] }"
        )
        content = self._complete(
            "generate interview questions",
            [
                {"role": "system", "content": "You are an expert HR interviewer. Generate professional "
                                              "interview questions with expected answer points."},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        data = parse_json_reply(content or "{}")
        questions = data.get("questions") or []
        if not isinstance(questions, list):
            raise GenerationError("Failed to generate interview questions", detail="questions is not a list")
        out = []
        for q in questions:
            if isinstance(q, str):
                q = {"question": q}
            if not isinstance(q, dict) or not str(q.get("question") or "").strip():
                continue
            points = q.get("expectedPoints") or []
            out.append({
                "question": str(q["question"]).strip(),
                "expectedPoints": [str(p) for p in points] if isinstance(points, list) else [],
            })
        return out

    def evaluate_answer(self, question: str, answer: str, job_title: str) -> Dict[str, Any]:
        prompt = (
            f"Evaluate this interview answer for a {job_title} position.\n\n"
            f"Question: {question}\n"
            f"Answer: {answer}\n\n"
            "Provide a score from 1-10 and constructive feedback. "
            "Include specific suggestions for improvement.\n\n"
            "Return response as JSON: "
            "{ \"score\": 7, \"feedback\": \"Good start but could be more specific...\", "
            "\"suggestions\": [\"Add specific examples\", \"Quantify achievements\"] }"
        )
        content = self._complete(
            "evaluate answer",
            [
                {"role": "system", "content": "You are an expert interview coach. "
                                              "Provide constructive, encouraging feedback."},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        data = parse_json_reply(content or "{}")
        suggestions = data.get("suggestions") or []
        return {
            "score": clamp_score(data.get("score")),
            "feedback": str(data.get("feedback") or ""),
            "suggestions": [str(s) for s in suggestions] if isinstance(suggestions, list) else [],
        }

    def generate_career_advice(self, message: str, history: List[Dict[str, Any]]) -> str:
        context = [
            {"role": m["role"], "content": m["content"]}
            for m in (history or [])[-self.context_messages:]
            if m.get("role") in ("user", "assistant")
        ]
        messages = [{"role": "system", "content": CAREER_SYSTEM_PROMPT}, *context,
                    {"role": "user", "content": message}]
        content = self._complete("generate career advice", messages, max_tokens=500)
        return content or EMPTY_ADVICE_REPLY


def build_gateway(config) -> CompletionGateway:
    """Pick the gateway once at startup from the configured credential."""
    api_key = ai_credential(config)
    if api_key is None:
        logger.info("No AI credential configured; using mock completion gateway")
        return MockGateway()
    return LiveGateway(
        api_key=api_key,
        model=config.get("OPENAI_MODEL") or "gpt-4o",
        base_url=config.get("OPENAI_BASE_URL"),
        timeout=config.get("AI_TIMEOUT_SECONDS") or 30,
        context_messages=config.get("CHAT_CONTEXT_MESSAGES") or DEFAULT_CONTEXT_MESSAGES,
    )
