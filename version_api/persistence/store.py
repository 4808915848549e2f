"""
Key-Value Stores — Where the version record lives between refreshes.

Every handler receives a store handle explicitly; there is no global cache.
All backends speak plain strings and raise StoreError on failure.

## Backends

- memory:     in-process dict (tests, single-process dev)
- file:       one JSON document on disk, written atomically
- cloudflare: Cloudflare Workers KV via the REST API

## Environment Variables (cloudflare)

- CLOUDFLARE_ACCOUNT_ID
- CLOUDFLARE_KV_NAMESPACE_ID
- CLOUDFLARE_API_TOKEN
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from ..errors import ConfigError, StoreError

logger = logging.getLogger(__name__)

CLOUDFLARE_API = "https://api.cloudflare.com/client/v4"


class KeyValueStore(ABC):
    """Minimal string key-value interface."""

    name: str = "store"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""


class MemoryStore(KeyValueStore):
    """Dict-backed store. Contents vanish with the process."""

    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class FileStore(KeyValueStore):
    """
    JSON-file store.

    The file holds one object mapping keys to string values. Writes go to a
    temp file first and are renamed into place to prevent corruption.
    """

    name = "file"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Cannot read {self.path}: expected a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except StoreError as e:
                # A refresh replaces the record wholesale; don't let a corrupt file block it
                logger.warning(f"{e} — rewriting store from scratch")
                data = {}
            data[key] = value
            temp_path = self.path.with_suffix(".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with temp_path.open("w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                    f.write("\n")
                temp_path.replace(self.path)
            except OSError as e:
                raise StoreError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Stored {key} → {self.path.name}")


class CloudflareKVStore(KeyValueStore):
    """
    Cloudflare Workers KV namespace accessed over the REST API.

    GET  /accounts/{account}/storage/kv/namespaces/{ns}/values/{key}
    PUT  /accounts/{account}/storage/kv/namespaces/{ns}/values/{key}
    """

    name = "cloudflare"

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = (
            f"{CLOUDFLARE_API}/accounts/{account_id}"
            f"/storage/kv/namespaces/{namespace_id}"
        )
        self.api_token = api_token
        self.timeout = timeout
        self._client = client

    def _url(self, key: str) -> str:
        return f"{self.base_url}/values/{quote(key, safe='')}"

    def _headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_token}"}
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _request(self, method: str, key: str, **kwargs) -> httpx.Response:
        try:
            if self._client is not None:
                return self._client.request(method, self._url(key), timeout=self.timeout, **kwargs)
            return httpx.request(method, self._url(key), timeout=self.timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise StoreError(f"Cloudflare KV {method} {key} timed out") from e
        except httpx.RequestError as e:
            raise StoreError(f"Cloudflare KV {method} {key} failed: {e}") from e

    def get(self, key: str) -> Optional[str]:
        response = self._request("GET", key, headers=self._headers())
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise StoreError(
                f"Cloudflare KV read returned {response.status_code}: {response.text[:200]}"
            )
        return response.text

    def put(self, key: str, value: str) -> None:
        response = self._request(
            "PUT",
            key,
            headers=self._headers("text/plain"),
            content=value.encode("utf-8"),
        )
        if response.status_code >= 400:
            raise StoreError(
                f"Cloudflare KV write returned {response.status_code}: {response.text[:200]}"
            )
        logger.debug(f"Stored {key} in Cloudflare KV")


def build_store(settings, project_root: Optional[Path] = None) -> KeyValueStore:
    """
    Create the store selected by ``settings.store_backend``.

    Relative file paths are resolved against ``project_root`` (or the
    current directory).
    """
    backend = settings.store_backend
    if backend == "memory":
        return MemoryStore()

    if backend == "file":
        path = Path(settings.store_path)
        if not path.is_absolute() and project_root is not None:
            path = Path(project_root) / path
        return FileStore(path)

    if backend == "cloudflare":
        if not settings.has_cloudflare():
            raise ConfigError(
                "Cloudflare store needs CLOUDFLARE_ACCOUNT_ID, "
                "CLOUDFLARE_KV_NAMESPACE_ID and CLOUDFLARE_API_TOKEN"
            )
        return CloudflareKVStore(
            account_id=settings.cloudflare_account_id,
            namespace_id=settings.cloudflare_namespace_id,
            api_token=settings.cloudflare_api_token,
        )

    raise ConfigError(f"Unknown store backend: {backend!r}")
