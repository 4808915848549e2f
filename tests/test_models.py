"""
Tests for the VersionRecord model.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from version_api.models.record import UNKNOWN_VERSION, VersionRecord, now_ms


class TestVersionRecord:

    def test_payload_uses_camel_case(self, cached_record):
        assert cached_record.to_payload() == {
            "packageVersion": "2.3.0",
            "mirrorAvailability": {"alpha": True, "beta": False, "gamma": True},
            "lastUpdated": 1_700_000_000_000,
        }

    def test_json_round_trip(self, cached_record):
        assert VersionRecord.from_json(cached_record.to_json()) == cached_record

    def test_accepts_field_names(self):
        record = VersionRecord(package_version="1.0.0", mirror_availability={})
        assert record.package_version == "1.0.0"

    def test_accepts_aliases(self):
        record = VersionRecord.model_validate(
            {"packageVersion": "1.0.0", "mirrorAvailability": {"a": False}, "lastUpdated": 5}
        )
        assert record.last_updated == 5

    def test_last_updated_defaults_to_now(self):
        before = now_ms()
        record = VersionRecord(package_version="1.0.0", mirror_availability={})

        assert before <= record.last_updated <= now_ms()

    def test_immutable(self, cached_record):
        with pytest.raises(ValidationError):
            cached_record.package_version = "9.9.9"

    def test_available_mirrors(self, cached_record):
        assert cached_record.available_mirrors == ["alpha", "gamma"]

    def test_covers(self, cached_record):
        assert cached_record.covers(["gamma", "alpha", "beta"])
        assert not cached_record.covers(["alpha", "beta"])
        assert not cached_record.covers(["alpha", "beta", "gamma", "delta"])

    def test_unknown_sentinel(self):
        record = VersionRecord(package_version=UNKNOWN_VERSION, mirror_availability={})
        assert record.is_unknown

    def test_to_json_is_compact_json(self, cached_record):
        assert json.loads(cached_record.to_json())["lastUpdated"] == 1_700_000_000_000
