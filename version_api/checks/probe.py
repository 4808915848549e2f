"""
CDN Probe — Is a given version served by a mirror?

Substitute the version into the mirror's URL template and send HEAD
requests until one returns 2xx or the attempt budget runs out. There is
no delay between attempts. Failures never escape: the answer is a bool.
"""

from __future__ import annotations

import logging

import httpx

from ..config.mirrors import MirrorTemplate

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def probe_url(client: httpx.Client, url: str, attempts: int = DEFAULT_ATTEMPTS) -> bool:
    """HEAD ``url`` up to ``attempts`` times; True on the first 2xx."""
    attempt = 0
    success = False

    while attempt < attempts and not success:
        attempt += 1
        try:
            response = client.head(url)
            if is_success(response.status_code):
                success = True
            else:
                logger.debug(f"HEAD {url} attempt {attempt}/{attempts}: {response.status_code}")
        except Exception as exc:
            # Transport errors, timeouts and invalid URLs all count as a failed attempt
            logger.debug(f"HEAD {url} attempt {attempt}/{attempts} failed: {exc!r}")

    return success


def probe_mirror(
    client: httpx.Client,
    mirror: MirrorTemplate,
    version: str,
    *,
    package: str = "",
    attempts: int = DEFAULT_ATTEMPTS,
) -> bool:
    """Probe one mirror for ``version``. Never raises."""
    url = mirror.url_for(version, package)
    available = probe_url(client, url, attempts)
    logger.info(
        f"{mirror.name}: {'available' if available else 'unavailable'} ({url})",
        extra={"mirror": mirror.name},
    )
    return available
