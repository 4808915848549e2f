"""
API shared helpers.

Response builders, bearer-token checks and accessors for the objects the
app factory stores in ``app.config``. Every JSON body carries a ``status``
field of "success" or "error".
"""

from __future__ import annotations

import hmac
from typing import Any, Optional

from flask import current_app, jsonify

from ..models.record import VersionRecord

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def get_settings():
    return current_app.config["SETTINGS"]


def get_store():
    return current_app.config["VERSION_STORE"]


def get_http_client():
    """Injected HTTP client, or None to let each refresh open its own."""
    return current_app.config.get("HTTP_CLIENT")


def success_response(record: VersionRecord, **extra: Any):
    """``{"status": "success", ...extra, ...record}`` with HTTP 200."""
    return jsonify({"status": "success", **extra, **record.to_payload()})


def error_response(message: str, status_code: int, error: Optional[str] = None):
    body = {"status": "error", "message": message}
    if error is not None:
        body["error"] = error
    return jsonify(body), status_code


def extract_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token from ``Authorization: Bearer <token>``, else None."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token:
        return None
    return token


def is_authorized(header: Optional[str], secret: Optional[str]) -> bool:
    """Constant-time comparison of the bearer token against the secret."""
    token = extract_bearer(header)
    if not token or not secret:
        return False
    return hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))
