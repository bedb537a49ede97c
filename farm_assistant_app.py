"""WSGI entry point for the Flora farm assistant backend.

Serves the API with Flask's threaded development server; production
deployments point a WSGI server at ``farm_assistant_app:app``.
"""
from __future__ import annotations

import logging
import os

from app import create_app

app = create_app()


def _env_flag_true(name: str) -> bool:
    v = os.getenv(name)
    return bool(v and v.lower() in ("1", "true", "yes", "on"))


def main() -> int:
    host = os.getenv("FLORA_HOST", "0.0.0.0")
    port = int(os.getenv("FLORA_PORT", "8000"))
    debug = _env_flag_true("FLORA_DEBUG")

    logging.info("Starting server on %s:%s", host, port)
    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
