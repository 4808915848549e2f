"""
Tests for the click CLI.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from version_api.main import cli
from version_api.models.record import VersionRecord
from version_api.persistence.store import FileStore


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path) -> dict:
    return {
        "VERSION_API_CONFIG": "",
        "STORE_BACKEND": "file",
        "STORE_PATH": str(tmp_path / "cache.json"),
        "PACKAGE_NAME": "demo-theme",
        "MIRROR_PRESET": "worker",
        "MIRRORS": "",
        "REFRESH_SECRET": "s3cret",
    }


def _invoke(runner, env, *args):
    return runner.invoke(cli, list(args), obj={}, env=env)


class TestMirrorsCommand:

    def test_lists_preset_urls(self, runner, cli_env):
        result = _invoke(runner, cli_env, "mirrors", "--version", "9.9.9")

        assert result.exit_code == 0, result.output
        assert "jsdelivr" in result.output
        assert "https://unpkg.com/demo-theme@9.9.9/source/js/build/main.js" in result.output

    def test_bad_config_is_a_clean_error(self, runner, cli_env):
        cli_env["MIRROR_PRESET"] = "nowhere"

        result = _invoke(runner, cli_env, "mirrors")

        assert result.exit_code != 0
        assert "Unknown mirror preset" in result.output


class TestInfoCommand:

    def test_cold_cache(self, runner, cli_env):
        result = _invoke(runner, cli_env, "info")

        assert result.exit_code == 1
        assert "No cached version data" in result.output

    def test_shows_cached_record(self, runner, cli_env, cached_record):
        FileStore(Path(cli_env["STORE_PATH"])).put("versionData", cached_record.to_json())

        result = _invoke(runner, cli_env, "info")

        assert result.exit_code == 0, result.output
        assert "2.3.0" in result.output
        assert "alpha" in result.output

    def test_json_output(self, runner, cli_env, cached_record):
        FileStore(Path(cli_env["STORE_PATH"])).put("versionData", cached_record.to_json())

        result = _invoke(runner, cli_env, "info", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == cached_record.to_payload()


class TestRefreshCommand:

    def test_refresh_prints_record(self, runner, cli_env, cached_record):
        with patch("version_api.main.refresh_version_record", return_value=cached_record) as mock:
            result = _invoke(runner, cli_env, "refresh")

        assert result.exit_code == 0, result.output
        mock.assert_called_once()
        assert "Version data refreshed" in result.output

    def test_refresh_json(self, runner, cli_env, cached_record):
        with patch("version_api.main.refresh_version_record", return_value=cached_record):
            result = _invoke(runner, cli_env, "refresh", "--json")

        assert json.loads(result.output)["packageVersion"] == "2.3.0"

    def test_refresh_failure_exits_nonzero(self, runner, cli_env):
        from version_api.errors import StoreError

        with patch("version_api.main.refresh_version_record", side_effect=StoreError("disk full")):
            result = _invoke(runner, cli_env, "refresh")

        assert result.exit_code != 0
        assert "disk full" in result.output


class TestScheduledCommand:

    def test_delegates_to_scheduler(self, runner, cli_env):
        with patch("version_api.main.run_scheduled_refresh") as mock:
            result = _invoke(runner, cli_env, "scheduled")

        assert result.exit_code == 0, result.output
        mock.assert_called_once()
        settings, store = mock.call_args[0]
        assert settings.package_name == "demo-theme"
        assert isinstance(store, FileStore)


class TestCheckConfig:

    def test_valid(self, runner, cli_env):
        result = _invoke(runner, cli_env, "check-config")

        assert result.exit_code == 0, result.output
        assert "Configuration valid" in result.output

    def test_invalid(self, runner, cli_env):
        cli_env["STORE_BACKEND"] = "cloudflare"

        result = _invoke(runner, cli_env, "check-config")

        assert result.exit_code == 1
        assert "CLOUDFLARE_ACCOUNT_ID" in result.output

    def test_missing_secret_warns(self, runner, cli_env):
        cli_env["REFRESH_SECRET"] = ""

        result = _invoke(runner, cli_env, "check-config")

        assert result.exit_code == 0
        assert "REFRESH_SECRET not set" in result.output
