"""
API — Manual refresh.

Blueprint: refresh_bp
Routes:
    /api/refresh   (POST, Authorization: Bearer <REFRESH_SECRET>)

Any method other than POST is answered with 405 before the credential is
looked at. A missing or wrong token is 401 and nothing is refreshed.
"""

from __future__ import annotations

import logging

from flask import Blueprint, request

from ..checks.refresh import refresh_version_record
from .helpers import (
    error_response,
    get_http_client,
    get_settings,
    get_store,
    is_authorized,
    success_response,
)

logger = logging.getLogger(__name__)

refresh_bp = Blueprint("refresh", __name__)

# Registered explicitly so the view, not Flask, answers wrong methods
_ACCEPTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@refresh_bp.route("/api/refresh", methods=_ACCEPTED_METHODS)
def api_refresh():
    """Refresh the version record now and return it."""
    if request.method != "POST":
        return error_response("Method Not Allowed. Use POST request.", 405)

    settings = get_settings()
    if not is_authorized(request.headers.get("Authorization"), settings.refresh_secret):
        logger.warning(f"Rejected refresh from {request.remote_addr}: invalid or missing secret key")
        return error_response("Unauthorized. Invalid or missing secret key.", 401)

    try:
        record = refresh_version_record(settings, get_store(), client=get_http_client())
    except Exception as e:
        logger.exception("Manual refresh failed")
        return error_response("Error refreshing", 500, error=str(e))

    return success_response(record, message="Version data refreshed")
