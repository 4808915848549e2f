"""
API Server — Flask application serving the cached version record.

The store, settings and (optionally) an HTTP client are injected through
``create_app`` and kept in ``app.config``; routes never reach for globals.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from flask import Flask, g, request

from ..config.loader import Settings, load_settings
from ..logging_config import setup_logging
from ..persistence.store import KeyValueStore, build_store
from .helpers import CORS_HEADERS, error_response
from .routes_info import info_bp
from .routes_refresh import refresh_bp

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    project_root: Optional[Path] = None,
    http_client=None,
) -> Flask:
    """Create the Flask application."""
    project_root = project_root or Path.cwd()
    settings = settings or load_settings()
    store = store or build_store(settings, project_root)

    app = Flask(__name__)

    app.config["PROJECT_ROOT"] = project_root
    app.config["SETTINGS"] = settings
    app.config["VERSION_STORE"] = store
    app.config["HTTP_CLIENT"] = http_client

    # ── Register Blueprints ───────────────────────────────────────
    app.register_blueprint(info_bp)        # /api/info, /api/v2/info
    app.register_blueprint(refresh_bp)     # /api/refresh

    # ── Error Handlers ────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return error_response("Not Found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("Method Not Allowed", 405)

    @app.errorhandler(500)
    def internal_server_error(e):
        """Catch-all: JSON for any unhandled 500 so clients never see raw HTML."""
        original = getattr(e, "original_exception", None) or e
        logger.error(f"Unhandled 500 on {request.method} {request.path}: {original}")
        return error_response("Internal server error", 500, error=str(original))

    # ── CORS ──────────────────────────────────────────────────────

    @app.before_request
    def answer_preflight():
        """Permissive CORS preflight for any path."""
        g.start_time = time.time()
        if request.method == "OPTIONS":
            return "", 204

    @app.after_request
    def add_headers_and_log(response):
        for header, value in CORS_HEADERS.items():
            response.headers[header] = value

        if request.path.startswith("/api/") and request.method != "OPTIONS":
            duration_ms = int((time.time() - g.get("start_time", time.time())) * 1000)
            logger.info(
                f"{request.method} {request.path} → {response.status_code} ({duration_ms}ms)"
            )
        return response

    logger.info(
        f"API initialized (package={settings.package_name}, store={store.name}, "
        f"mirrors={','.join(settings.mirror_names)})"
    )

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 5050,
    debug: bool = False,
    settings: Optional[Settings] = None,
    project_root: Optional[Path] = None,
) -> None:
    """
    Run the API server.

    Args:
        host: Bind address (default: localhost only)
        port: Port to run on
        debug: Enable Flask debug mode
    """
    setup_logging(level="DEBUG" if debug else None)

    app = create_app(settings=settings, project_root=project_root)

    logger.info(f"Serving version API at http://{host}:{port}")

    # Reloader forks the process; the child would build a second store handle
    app.run(host=host, port=port, debug=debug, use_reloader=False)
