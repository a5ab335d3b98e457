import pytest

from jobready.app import create_app
from jobready.config import TestConfig
from jobready.errors import GenerationError
from jobready.llm_client import MockGateway
from jobready.storage import MemoryStore


class ScriptedGateway(MockGateway):
    """Mock gateway whose answer scores come from a fixed list."""

    def __init__(self, scores=None, questions=None):
        super().__init__(seed=0)
        self.scores = list(scores or [])
        self.questions = questions
        self.calls = []

    def generate_interview_questions(self, job_title, count=8):
        if self.questions is not None:
            return [{"question": q, "expectedPoints": []} for q in self.questions]
        return super().generate_interview_questions(job_title, count)

    def evaluate_answer(self, question, answer, job_title):
        self.calls.append((question, answer, job_title))
        score = self.scores.pop(0) if self.scores else 7
        return {"score": score, "feedback": f"scored {score}", "suggestions": ["be specific"]}

    def generate_career_advice(self, message, history):
        self.calls.append((message, list(history)))
        return f"advice #{len(self.calls)}"


class FailingGateway(MockGateway):
    def generate_cv_html(self, cv_data):
        raise GenerationError("Failed to generate CV", detail="upstream timeout")

    def generate_interview_questions(self, job_title, count=8):
        raise GenerationError("Failed to generate interview questions", detail="upstream timeout")

    def evaluate_answer(self, question, answer, job_title):
        raise GenerationError("Failed to evaluate answer", detail="upstream timeout")

    def generate_career_advice(self, message, history):
        raise GenerationError("Failed to generate career advice", detail="upstream timeout")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def gateway():
    return MockGateway(seed=42)


@pytest.fixture
def app(store, gateway):
    return create_app(TestConfig, store=store, gateway=gateway)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def valid_cv():
    return {
        "fullName": "Nimali Perera",
        "email": "nimali@example.com",
        "phone": "+94 77 123 4567",
        "location": "Colombo",
        "summary": "Junior web developer who enjoys building accessible, fast web apps for small teams.",
        "skills": "JavaScript, React, Python",
        "experience": "Built and maintained the student portal at my university for two years.",
        "education": "BSc in Computer Science, University of Colombo",
    }
