from __future__ import annotations

import atexit
import logging
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.assistant import assistant_api
from app.blueprints.api.calculators import calculators_api
from app.blueprints.api.chat import chat_api
from app.blueprints.api.community import community_api
from app.blueprints.api.logbook import logbook_api
from app.config import load_config, setup_logging


def create_app(config_overrides: dict[str, Any] | None = None, *, llm_backend=None) -> Flask:
    """
    Application factory.

    Args:
        config_overrides: AppConfig field values replacing the environment's
        llm_backend: Pre-built LLMBackend to use instead of the configured provider
    """
    config = load_config(config_overrides)

    setup_logging(debug=config.DEBUG, log_file=config.log_file)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.json.ensure_ascii = False

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config, llm_backend=llm_backend)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown ───────────────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        container.shutdown()

    atexit.register(_graceful_shutdown, "atexit")
    flask_app.extensions["flora_shutdown"] = _graceful_shutdown

    # Global JSON error handler: any unhandled exception on /api/ routes
    # returns the envelope with a generic message instead of a stack trace.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        from app.domain.exceptions import FloraError
        from app.utils.http import error_response, flora_error_response, safe_error

        if not request.path.startswith("/api/"):
            if isinstance(exc, HTTPException):
                return exc
            raise exc

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, FloraError):
            return flora_error_response(exc, context=type(exc).__name__)

        return safe_error(exc, 500, context="unhandled")

    @flask_app.errorhandler(413)
    def _handle_too_large(_exc):
        from app.utils.http import error_response

        return error_response(f"Upload larger than {config.max_upload_mb} MB", 413)

    V1 = "/api/v1"
    flask_app.register_blueprint(logbook_api, url_prefix=f"{V1}/logbook")
    flask_app.register_blueprint(assistant_api, url_prefix=f"{V1}/assistant")
    flask_app.register_blueprint(chat_api, url_prefix=f"{V1}/chat")
    flask_app.register_blueprint(community_api, url_prefix=f"{V1}/community")
    flask_app.register_blueprint(calculators_api, url_prefix=f"{V1}/calculators")

    for bp_name in flask_app.blueprints:
        logging.info(" Registered blueprint: %s", bp_name)

    logger = logging.getLogger(__name__)
    logger.info("Flora application initialized successfully.")

    return flask_app


__all__ = ["create_app"]
