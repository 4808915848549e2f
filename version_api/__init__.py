"""
CDN Version API — Is the latest package release on the CDN mirrors yet?

Fetches the latest published version from the registry, probes a list of
CDN mirrors for it, caches the result in a key-value store and serves it
over a small HTTP API.
"""

__version__ = "1.0.0"
