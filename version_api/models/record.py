"""
Version Record Model — The cached result of a refresh.

One record answers "which version is latest, and which mirrors serve it".
It is stored as a single JSON blob under a well-known key and replaced as
a whole on every refresh.

Serialized shape (camelCase, as served by the API):

    {
        "packageVersion": "2.3.1",
        "mirrorAvailability": {"jsdelivr": true, "unpkg": false, ...},
        "lastUpdated": 1760000000000
    }
"""

from __future__ import annotations

import time
from typing import Any, Dict, Iterable

from pydantic import BaseModel, ConfigDict, Field

# Returned by the registry fetcher when the latest version can't be determined
UNKNOWN_VERSION = "unknown"


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class VersionRecord(BaseModel):
    """Latest package version and its availability on each mirror."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    package_version: str = Field(alias="packageVersion")
    mirror_availability: Dict[str, bool] = Field(alias="mirrorAvailability")
    last_updated: int = Field(default_factory=now_ms, alias="lastUpdated")

    @property
    def is_unknown(self) -> bool:
        return self.package_version == UNKNOWN_VERSION

    @property
    def available_mirrors(self) -> list:
        return [name for name, ok in self.mirror_availability.items() if ok]

    def covers(self, mirror_names: Iterable[str]) -> bool:
        """True if this record holds exactly the given mirror names."""
        return set(self.mirror_availability) == set(mirror_names)

    def to_payload(self) -> Dict[str, Any]:
        """API/cache representation with camelCase keys."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "VersionRecord":
        return cls.model_validate_json(raw)
