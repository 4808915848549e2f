"""
Record Cache — Read and write the VersionRecord under its cache key.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from ..errors import StoreError
from ..models.record import VersionRecord
from .store import KeyValueStore

logger = logging.getLogger(__name__)


def load_record(store: KeyValueStore, key: str) -> Optional[VersionRecord]:
    """
    Load the cached record.

    Returns:
        The record, or None on a cold cache.

    Raises:
        StoreError: If the store fails or the cached value is not a record.
    """
    raw = store.get(key)
    if raw is None or raw == "":
        logger.debug(f"Cache miss for {key}", extra={"cache_key": key})
        return None
    try:
        record = VersionRecord.from_json(raw)
    except ValidationError as e:
        raise StoreError(f"Cached value under {key!r} is not a valid version record: {e}") from e
    logger.debug(
        f"Cache hit for {key}: version={record.package_version}",
        extra={"cache_key": key},
    )
    return record


def save_record(store: KeyValueStore, key: str, record: VersionRecord) -> None:
    """Overwrite the cached record. Raises StoreError on failure."""
    store.put(key, record.to_json())
    logger.info(
        f"Record saved: version={record.package_version} → {store.name}:{key}",
        extra={"cache_key": key},
    )
