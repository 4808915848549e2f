"""
Refresh — Build a fresh VersionRecord and write it to the store.

## Sequence

1. Fetch the latest version from the registry (once)
2. Probe every configured mirror for that version, concurrently
3. Pair results with mirror names, stamp the time
4. Overwrite the record under the cache key

Probe failures become ``False`` and a registry failure becomes "unknown",
so a refresh normally always completes. It fails as a whole only when the
registry raises (strict mode) or the store write fails; in that case
nothing is written.

## Usage

    from version_api.checks.refresh import refresh_version_record

    record = refresh_version_record(settings, store)
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import httpx

from .. import __version__
from ..config.loader import Settings
from ..models.record import VersionRecord, now_ms
from ..persistence.record_cache import save_record
from ..persistence.store import KeyValueStore
from .probe import probe_mirror
from .registry import fetch_latest_version

logger = logging.getLogger(__name__)


def generate_refresh_id() -> str:
    """Generate a refresh ID, e.g. R-20260204T120000-1A2B3C."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    return f"R-{ts}-{uuid4().hex[:6].upper()}"


def build_client(settings: Settings) -> httpx.Client:
    """HTTP client shared by the registry fetch and all probes of one refresh."""
    return httpx.Client(
        timeout=settings.probe_timeout,
        follow_redirects=True,
        headers={"User-Agent": f"version-api/{__version__}"},
    )


def refresh_version_record(
    settings: Settings,
    store: KeyValueStore,
    *,
    client: Optional[httpx.Client] = None,
) -> VersionRecord:
    """
    Run one refresh and persist the result.

    Args:
        settings: Package, registry and mirror configuration
        store: Store receiving the new record
        client: Optional HTTP client (a new one is created and closed otherwise)

    Returns:
        The record that was written.

    Raises:
        RegistryError: Registry unreachable and ``settings.registry_strict`` is set
        StoreError: The record could not be written
    """
    refresh_id = generate_refresh_id()
    log_extra = {"refresh_id": refresh_id}
    started = time.monotonic()

    logger.info(
        f"Refresh {refresh_id} started: package={settings.package_name}, "
        f"mirrors={len(settings.mirrors)}",
        extra=log_extra,
    )

    with ExitStack() as stack:
        if client is None:
            client = stack.enter_context(build_client(settings))

        version = fetch_latest_version(
            client,
            settings.registry_package_url,
            strict=settings.registry_strict,
        )
        logger.info(f"Refresh {refresh_id}: latest version {version}", extra=log_extra)

        mirrors = settings.mirrors
        with ThreadPoolExecutor(
            max_workers=max(1, len(mirrors)),
            thread_name_prefix="probe",
        ) as pool:
            results = list(pool.map(
                lambda mirror: probe_mirror(
                    client,
                    mirror,
                    version,
                    package=settings.package_name,
                    attempts=settings.probe_attempts,
                ),
                mirrors,
            ))

    record = VersionRecord(
        package_version=version,
        mirror_availability={m.name: ok for m, ok in zip(mirrors, results)},
        last_updated=now_ms(),
    )

    save_record(store, settings.cache_key, record)

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        f"Refresh {refresh_id} complete: version={record.package_version}, "
        f"available={len(record.available_mirrors)}/{len(mirrors)} ({duration_ms}ms)",
        extra=log_extra,
    )
    return record
