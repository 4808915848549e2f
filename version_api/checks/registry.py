"""
Registry Fetcher — Latest published version from the package registry.

GET {registry_url}/{package} and read ``dist-tags.latest`` from the JSON
body. Failures degrade to the "unknown" sentinel unless strict mode is on,
in which case they raise RegistryError and abort the refresh.
"""

from __future__ import annotations

import logging

import httpx

from ..errors import RegistryError
from ..models.record import UNKNOWN_VERSION

logger = logging.getLogger(__name__)


def fetch_latest_version(
    client: httpx.Client,
    url: str,
    *,
    strict: bool = False,
) -> str:
    """
    Return the ``latest`` dist-tag for the package at ``url``.

    Args:
        client: HTTP client used for the request
        url: Full registry URL for the package (e.g. https://registry.npmjs.org/pkg)
        strict: Raise RegistryError instead of returning "unknown"
    """
    try:
        response = client.get(url)
        response.raise_for_status()
        version = response.json()["dist-tags"]["latest"]
        if not isinstance(version, str) or not version.strip():
            raise ValueError(f"latest dist-tag is not a version string: {version!r}")
        version = version.strip()
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        if strict:
            raise RegistryError(f"Failed to fetch version from {url}: {e}") from e
        logger.warning(f"Failed to fetch version from {url}: {e}")
        return UNKNOWN_VERSION

    logger.debug(f"Registry latest for {url}: {version}")
    return version
