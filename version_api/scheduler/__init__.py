"""
Scheduled Refresh — Timer-driven cache maintenance.

An external timer (cron, systemd timer, CI schedule) calls
``run_scheduled_refresh`` via ``python -m version_api.main scheduled``.
The outcome is only visible in the logs and the updated cache: nothing is
returned and nothing is raised.

For hosts without an external timer, ``RefreshLoop`` runs the same
function every ``interval`` seconds until stopped
(``python -m version_api.main watch``).
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from ..checks.refresh import refresh_version_record
from ..config.loader import Settings
from ..persistence.store import KeyValueStore

logger = logging.getLogger(__name__)


def run_scheduled_refresh(
    settings: Settings,
    store: KeyValueStore,
    *,
    client: Optional[httpx.Client] = None,
) -> None:
    """Refresh the cached record; log success or failure."""
    logger.info("Running scheduled version refresh...")
    try:
        record = refresh_version_record(settings, store, client=client)
    except Exception:
        logger.exception("Scheduled refresh failed")
        return

    logger.info(
        "Version data refreshed successfully: version=%s, available=%s",
        record.package_version,
        ",".join(record.available_mirrors) or "none",
    )


class RefreshLoop:
    """Run the scheduled refresh on a fixed interval until stopped."""

    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore,
        interval: Optional[int] = None,
    ):
        self.settings = settings
        self.store = store
        self.interval = interval if interval is not None else settings.refresh_interval
        self.runs = 0
        self._stop = threading.Event()

    def run_once(self) -> None:
        run_scheduled_refresh(self.settings, self.store)
        self.runs += 1

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        """Refresh immediately, then every ``interval`` seconds. Blocks."""
        logger.info(f"Refresh loop started (interval={self.interval}s)")
        try:
            while not self._stop.is_set():
                self.run_once()
                self._stop.wait(timeout=self.interval)
        except KeyboardInterrupt:
            logger.info("Shutting down...")
            self._stop.set()
        logger.info(f"Refresh loop stopped after {self.runs} run(s)")
