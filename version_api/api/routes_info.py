"""
API — Cached version info.

Blueprint: info_bp
Routes:
    /api/info
    /api/v2/info

Serves the cached record. On a cold cache (or a record written for a
different mirror set) the request runs a full refresh first and pays its
latency. Concurrent cold requests may each refresh; probes are idempotent.
"""

from __future__ import annotations

import logging

from flask import Blueprint

from ..checks.refresh import refresh_version_record
from ..persistence.record_cache import load_record
from .helpers import error_response, get_http_client, get_settings, get_store, success_response

logger = logging.getLogger(__name__)

info_bp = Blueprint("info", __name__)


@info_bp.route("/api/info")
@info_bp.route("/api/v2/info")
def api_info():
    """Return the cached version record, refreshing on a cold cache."""
    settings = get_settings()
    store = get_store()

    try:
        record = load_record(store, settings.cache_key)
        if record is None:
            logger.info("No cached version data, refreshing now")
            record = refresh_version_record(settings, store, client=get_http_client())
        elif not record.covers(settings.mirror_names):
            logger.info("Cached mirrors differ from configuration, refreshing now")
            record = refresh_version_record(settings, store, client=get_http_client())
    except Exception as e:
        logger.exception("Failed to fetch version info")
        return error_response("Failed to fetch version info", 500, error=str(e))

    return success_response(record)
