# extensions.py
from flask import current_app
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .llm_client import CompletionGateway
from .storage import Store

jwt = JWTManager()

# bound to the app in create_app()
limiter = Limiter(key_func=get_remote_address)

STORE_KEY = "jobready.store"
GATEWAY_KEY = "jobready.gateway"


def get_store() -> Store:
    return current_app.extensions[STORE_KEY]


def get_gateway() -> CompletionGateway:
    return current_app.extensions[GATEWAY_KEY]
