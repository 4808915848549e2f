"""
Shared fixtures.

Provides settings with a small mirror set, an in-memory store, a fake HTTP
client with per-URL scripted responses and call counters, and a Flask
test app wired to all three so routes run without touching the network.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Dict, List, Union

import httpx
import pytest

pytest.importorskip("flask")

from version_api.config.loader import Settings
from version_api.config.mirrors import MirrorTemplate
from version_api.models.record import VersionRecord
from version_api.persistence.store import MemoryStore

REGISTRY_URL = "https://registry.test"
PACKAGE = "demo-theme"
SECRET = "s3cret-token"

MIRRORS = [
    MirrorTemplate("alpha", "https://alpha.test/{package}@{version}/main.js"),
    MirrorTemplate("beta", "https://beta.test/libs/{package}/{version}/main.js"),
    MirrorTemplate("gamma", "https://gamma.test/{package}/{version}/files/main.js"),
]


Scripted = Union[int, Exception, httpx.Response]


class FakeHTTP:
    """
    Minimal stand-in for ``httpx.Client``.

    Each URL gets a script: a list of status codes, exceptions or responses
    consumed one per call (the last entry repeats). Unscripted URLs return 404.
    Safe to call from the probe thread pool.
    """

    def __init__(self):
        self.scripts: Dict[str, List[Scripted]] = {}
        self.calls: Dict[str, int] = defaultdict(int)
        self.methods: List[str] = []
        self._lock = threading.Lock()

    def script(self, url: str, *outcomes: Scripted) -> "FakeHTTP":
        self.scripts[url] = list(outcomes)
        return self

    def registry(self, version: str = "2.3.1") -> "FakeHTTP":
        url = f"{REGISTRY_URL}/{PACKAGE}"
        body = {"name": PACKAGE, "dist-tags": {"latest": version}}
        return self.script(url, httpx.Response(200, json=body, request=httpx.Request("GET", url)))

    def _next(self, method: str, url: str) -> httpx.Response:
        with self._lock:
            self.calls[url] += 1
            self.methods.append(method)
            script = self.scripts.get(url, [404])
            index = min(self.calls[url], len(script)) - 1
            outcome = script[index]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        return httpx.Response(outcome, request=httpx.Request(method, url))

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self._next("GET", url)

    def head(self, url: str, **kwargs) -> httpx.Response:
        return self._next("HEAD", url)

    @property
    def head_count(self) -> int:
        return self.methods.count("HEAD")

    @property
    def get_count(self) -> int:
        return self.methods.count("GET")


def mirror_url(name: str, version: str = "2.3.1") -> str:
    mirror = next(m for m in MIRRORS if m.name == name)
    return mirror.url_for(version, PACKAGE)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        refresh_secret=SECRET,
        package_name=PACKAGE,
        registry_url=REGISTRY_URL,
        mirror_preset="custom",
        mirrors=list(MIRRORS),
        probe_attempts=3,
        probe_timeout=1.0,
        cache_key="versionData",
        store_backend="memory",
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def http() -> FakeHTTP:
    return FakeHTTP()


@pytest.fixture
def cached_record() -> VersionRecord:
    """A record as an earlier refresh would have written it."""
    return VersionRecord(
        package_version="2.3.0",
        mirror_availability={"alpha": True, "beta": False, "gamma": True},
        last_updated=1_700_000_000_000,
    )


@pytest.fixture
def app(settings, store, http, tmp_path):
    """Flask test app over the memory store and fake HTTP client."""
    from version_api.api.server import create_app

    app = create_app(settings=settings, store=store, project_root=tmp_path, http_client=http)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
