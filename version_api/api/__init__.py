"""
Version API — HTTP surface for the cached version record.

Usage:
    python -m version_api.api
    # Serves http://localhost:5050/api/info

Routes:
    GET  /api/info, /api/v2/info   cached record (refreshes on a cold cache)
    POST /api/refresh              refresh now (bearer token required)
"""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
