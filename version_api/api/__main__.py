"""
Run the API server directly.

Usage:
    python -m version_api.api
    python -m version_api.api --port 8000
    python -m version_api.api --host 0.0.0.0
"""

import argparse

from .server import run_server


def main():
    parser = argparse.ArgumentParser(description="CDN Version API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=5050, help="Port (default: 5050)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    args = parser.parse_args()

    run_server(
        host=args.host,
        port=args.port,
        debug=args.debug,
    )


if __name__ == "__main__":
    main()
