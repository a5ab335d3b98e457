# app.py
from __future__ import annotations
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# --- Load env BEFORE importing config (so config sees env) ---
load_dotenv(Path.cwd() / ".env")

from flask import Flask, jsonify
from flask_cors import CORS
from flask_talisman import Talisman
from werkzeug.exceptions import HTTPException

from .auth import auth_bp
from .config import config_for_env, validate_required_secrets
from .errors import JobReadyError
from .extensions import GATEWAY_KEY, STORE_KEY, jwt, limiter
from .llm_client import build_gateway
from .routes import api_bp
from .storage import build_store

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(lineno)d %(name)s - %(levelname)s - %(message)s"


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(format=LOG_FORMAT, level=level)
    logging.getLogger("jobready").setLevel(level)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(JobReadyError)
    def _jobready_error(e: JobReadyError):
        if e.status_code >= 500:
            logger.error("%s: %s (%s)", type(e).__name__, e.message, e.detail)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_object=None, store=None, gateway=None) -> Flask:
    """Build the JSON API.

    ``store`` and ``gateway`` default to what the config selects
    (STORAGE_BACKEND and the AI credential); tests pass their own.
    """
    app = Flask(__name__)
    app.config.from_object(config_object or config_for_env())
    validate_required_secrets()  # raises only when ENV=prod and secrets missing
    app.url_map.strict_slashes = False
    app.json.sort_keys = False
    _configure_logging(app)

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"] or "*"}},
        supports_credentials=False,
        allow_headers=["Authorization", "Content-Type"],
        methods=["GET", "POST", "OPTIONS"],
    )

    # JSON API: nothing to load from other origins
    Talisman(
        app,
        force_https=app.config.get("FORCE_HTTPS", False),
        content_security_policy={
            "default-src": ["'none'"],
            "frame-ancestors": ["'none'"],
        },
        session_cookie_secure=app.config.get("FORCE_HTTPS", False),
        session_cookie_samesite="Lax",
        frame_options="DENY",
        referrer_policy="strict-origin-when-cross-origin",
    )

    jwt.init_app(app)
    limiter.init_app(app)

    app.extensions[STORE_KEY] = store if store is not None else build_store(app.config)
    app.extensions[GATEWAY_KEY] = gateway if gateway is not None else build_gateway(app.config)

    _register_error_handlers(app)
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    logger.info("JobReady API ready (ai=%s, storage=%s)",
                app.extensions[GATEWAY_KEY].name, app.extensions[STORE_KEY].name)
    return app


# ------------------------------
# Entrypoint
# ------------------------------
if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")),
                    debug=application.config.get("DEBUG", False))
