import pytest

from jobready import cv_builder
from jobready.errors import GenerationError
from jobready.validators import validate_cv

from .conftest import FailingGateway


class RecordingStore:
    """Wraps a store to capture the CV as first created."""

    def __init__(self, inner):
        self.inner = inner
        self.created = []

    def create_cv(self, data):
        cv = self.inner.create_cv(data)
        self.created.append(cv)
        return cv

    def __getattr__(self, name):
        return getattr(self.inner, name)


def test_generated_html_attached_after_creation(store, gateway, valid_cv):
    recording = RecordingStore(store)
    cv = cv_builder.generate_cv(recording, gateway, validate_cv(valid_cv, "u1"))
    assert recording.created[0]["generatedHtml"] is None
    assert cv["generatedHtml"]
    assert valid_cv["fullName"] in cv["generatedHtml"]
    assert valid_cv["email"] in cv["generatedHtml"]
    assert store.get_cv(cv["id"]) == cv
    assert cv["skills"] == ["JavaScript", "React", "Python"]


def test_generation_failure_persists_nothing(store, valid_cv):
    with pytest.raises(GenerationError):
        cv_builder.generate_cv(store, FailingGateway(), validate_cv(valid_cv, "u1"))
    assert cv_builder.list_user_cvs(store, "u1") == []


def test_apostrophe_email_kept_verbatim(store, gateway, valid_cv):
    valid_cv["email"] = "o'brien@example.com"
    cv = cv_builder.generate_cv(store, gateway, validate_cv(valid_cv, "u1"))
    assert "o'brien@example.com" in cv["generatedHtml"]
