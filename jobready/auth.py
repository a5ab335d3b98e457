# auth.py
from __future__ import annotations
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from .extensions import get_store, jwt

auth_bp = Blueprint("auth", __name__)


# Token failures answer with the same {"error": ...} body as every other error
@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return jsonify({"error": "Invalid bearer token", "detail": reason}), 401


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({"error": "Bearer token has expired"}), 401


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return jsonify({"error": "Authorization required", "detail": reason}), 401


def token_identity() -> Optional[str]:
    """Identity from a bearer token issued by the identity provider, if any.

    No token means an anonymous caller; a token that fails verification is
    rejected with 401 rather than treated as anonymous.
    """
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    return str(identity) if identity else None


def current_user_id() -> str:
    return token_identity() or current_app.config["DEFAULT_USER_ID"]


def _user_from_claims(user_id: str, claims: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user_id,
        "email": claims.get("email") or "dev@example.com",
        "firstName": claims.get("first_name") or "Dev",
        "lastName": claims.get("last_name") or "User",
        "profileImageUrl": claims.get("profile_image_url"),
    }


@auth_bp.get("/user")
def get_current_user():
    """
    Response: the stored user for the token identity. A signed-in user seen
    for the first time is stored from the token claims; without a token the
    dev placeholder user is returned and nothing is stored.
    """
    identity = token_identity()
    if identity is None:
        user_id = current_app.config["DEFAULT_USER_ID"]
        return jsonify(get_store().get_user(user_id) or _user_from_claims(user_id, {}))

    store = get_store()
    user = store.get_user(identity)
    if user is None:
        user = store.upsert_user(_user_from_claims(identity, get_jwt()))
    return jsonify(user)
