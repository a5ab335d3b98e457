# config.py
import os
from typing import Optional

PLACEHOLDER_API_KEY = "sk-test-key-for-development"


def _csv_env(name: str, default: str = "") -> list[str]:
    val = os.getenv(name, default)
    return [x.strip() for x in val.split(",") if x.strip()] if val else []


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class BaseConfig:
    DEBUG = False
    TESTING = False
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB of JSON is plenty
    PREFERRED_URL_SCHEME = "https"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Secrets (must be set in env for prod)
    SECRET_KEY = os.getenv("APP_SECRET_KEY") or "dev-only-secret-change-me"
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or "dev-only-jwt-secret-change-me"

    # CORS / headers
    CORS_ORIGINS = _csv_env("CORS_ORIGINS", "http://localhost:5000,http://localhost:5173")
    FORCE_HTTPS = False

    # Completion service; no key (or the placeholder) selects the mock gateway
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or os.getenv("OPENROUTER_API_KEY")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
    AI_TIMEOUT_SECONDS = _int_env("AI_TIMEOUT_SECONDS", 30)

    # Storage
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB = os.getenv("MONGO_DB", "jobready")

    # Domain
    DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "dev-user-1")
    INTERVIEW_QUESTION_COUNT = _int_env("INTERVIEW_QUESTION_COUNT", 8)
    CHAT_CONTEXT_MESSAGES = _int_env("CHAT_CONTEXT_MESSAGES", 10)

    # Rate limits
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per hour")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AI_RATE_LIMIT = os.getenv("AI_RATE_LIMIT", "20/minute")


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    FORCE_HTTPS = True
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mongo")


class TestConfig(BaseConfig):
    TESTING = True
    RATELIMIT_ENABLED = False
    OPENAI_API_KEY = None
    STORAGE_BACKEND = "memory"
    DEFAULT_USER_ID = "dev-user-1"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    LOG_LEVEL = "WARNING"


def config_for_env(env: Optional[str] = None):
    env = env if env is not None else os.getenv("ENV", "dev")
    return {"prod": ProdConfig, "test": TestConfig}.get(env, DevConfig)


def ai_credential(config) -> Optional[str]:
    """Return the live API key, or None when the mock gateway should be used."""
    key = (config.get("OPENAI_API_KEY") or "").strip()
    if not key or key == PLACEHOLDER_API_KEY:
        return None
    return key


def validate_required_secrets():
    if os.getenv("ENV") == "prod":
        if not os.getenv("APP_SECRET_KEY") or not os.getenv("JWT_SECRET_KEY"):
            raise RuntimeError("APP_SECRET_KEY and JWT_SECRET_KEY must be set in production")
