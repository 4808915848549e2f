"""
Config Loader — Load service settings from a master key or individual env vars.

Supports two modes:
1. Master JSON key: a single VERSION_API_CONFIG env var with all settings
2. Individual keys: separate env vars for each setting (fallback)

## Usage

    # Option 1: Master config (one deployment secret)
    export VERSION_API_CONFIG='{"refresh_secret": "s3cret", "package_name": "my-theme"}'

    # Option 2: Individual keys
    export REFRESH_SECRET="s3cret"
    export PACKAGE_NAME="my-theme"

The loader reads the master config first, then fills gaps from individual keys.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ConfigError
from .mirrors import DEFAULT_PRESET, MirrorTemplate, VERSION_PLACEHOLDER, resolve_mirrors

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("file", "memory", "cloudflare")

# env var name -> (settings field, default)
_ENV_KEYS: Dict[str, tuple] = {
    "REFRESH_SECRET": ("refresh_secret", None),
    "PACKAGE_NAME": ("package_name", "hexo-theme-redefine-x"),
    "REGISTRY_URL": ("registry_url", "https://registry.npmjs.org"),
    "REGISTRY_STRICT": ("registry_strict", "false"),
    "MIRROR_PRESET": ("mirror_preset", DEFAULT_PRESET),
    "MIRRORS": ("mirrors_json", None),
    "PROBE_ATTEMPTS": ("probe_attempts", "3"),
    "PROBE_TIMEOUT_SECONDS": ("probe_timeout", "10"),
    "CACHE_KEY": ("cache_key", "versionData"),
    "STORE_BACKEND": ("store_backend", "file"),
    "STORE_PATH": ("store_path", "state/version_cache.json"),
    "CLOUDFLARE_ACCOUNT_ID": ("cloudflare_account_id", None),
    "CLOUDFLARE_KV_NAMESPACE_ID": ("cloudflare_namespace_id", None),
    "CLOUDFLARE_API_TOKEN": ("cloudflare_api_token", None),
    "REFRESH_INTERVAL_SECONDS": ("refresh_interval", "3600"),
}


@dataclass
class Settings:
    """Everything the service needs, resolved and typed."""

    refresh_secret: Optional[str] = None
    package_name: str = "hexo-theme-redefine-x"
    registry_url: str = "https://registry.npmjs.org"
    registry_strict: bool = False

    mirror_preset: str = DEFAULT_PRESET
    mirrors: List[MirrorTemplate] = field(default_factory=lambda: resolve_mirrors(DEFAULT_PRESET))

    probe_attempts: int = 3
    probe_timeout: float = 10.0

    cache_key: str = "versionData"
    store_backend: str = "file"
    store_path: str = "state/version_cache.json"

    # Cloudflare Workers KV
    cloudflare_account_id: Optional[str] = None
    cloudflare_namespace_id: Optional[str] = None
    cloudflare_api_token: Optional[str] = None

    refresh_interval: int = 3600

    @property
    def mirror_names(self) -> List[str]:
        return [m.name for m in self.mirrors]

    @property
    def registry_package_url(self) -> str:
        return f"{self.registry_url.rstrip('/')}/{self.package_name}"

    def has_cloudflare(self) -> bool:
        return all([
            self.cloudflare_account_id,
            self.cloudflare_namespace_id,
            self.cloudflare_api_token,
        ])


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from the master key and individual env vars.

    Priority:
    1. VERSION_API_CONFIG (master JSON)
    2. Individual environment variables
    3. Defaults

    Raises:
        ConfigError: If a value can't be parsed (bad number, unknown preset,
            invalid MIRRORS JSON).
    """
    env = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}

    master_config = env.get("VERSION_API_CONFIG")
    if master_config:
        try:
            raw = _parse_master_config(json.loads(master_config))
            logger.info("Loaded configuration from VERSION_API_CONFIG")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid VERSION_API_CONFIG JSON: {e}")
        except Exception as e:
            logger.error(f"Failed to parse VERSION_API_CONFIG: {e}")

    for env_key, (attr, default) in _ENV_KEYS.items():
        if raw.get(attr) in (None, ""):
            raw[attr] = env.get(env_key) or default

    mirrors_json = raw.pop("mirrors_json", None)
    if isinstance(mirrors_json, dict):
        mirrors_json = json.dumps(mirrors_json)

    try:
        return Settings(
            refresh_secret=raw["refresh_secret"] or None,
            package_name=str(raw["package_name"]).strip(),
            registry_url=str(raw["registry_url"]).strip(),
            registry_strict=_as_bool(raw["registry_strict"]),
            mirror_preset=str(raw["mirror_preset"]),
            mirrors=resolve_mirrors(str(raw["mirror_preset"]), mirrors_json),
            probe_attempts=int(raw["probe_attempts"]),
            probe_timeout=float(raw["probe_timeout"]),
            cache_key=str(raw["cache_key"]),
            store_backend=str(raw["store_backend"]).strip().lower(),
            store_path=str(raw["store_path"]),
            cloudflare_account_id=raw["cloudflare_account_id"],
            cloudflare_namespace_id=raw["cloudflare_namespace_id"],
            cloudflare_api_token=raw["cloudflare_api_token"],
            refresh_interval=int(raw["refresh_interval"]),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e


def _parse_master_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map master config keys (snake_case or ENV_CASE) onto settings fields."""
    if not isinstance(data, dict):
        raise ValueError("VERSION_API_CONFIG must be a JSON object")
    parsed: Dict[str, Any] = {}
    for env_key, (attr, _default) in _ENV_KEYS.items():
        value = data.get(attr, data.get(env_key.lower(), data.get(env_key)))
        if value is not None:
            parsed[attr] = value
    # "mirrors" reads better than "mirrors_json" in a JSON document
    if "mirrors" in data and "mirrors_json" not in parsed:
        parsed["mirrors_json"] = data["mirrors"]
    return parsed


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ValidationReport:
    """Result of ``validate_settings``."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_settings(settings: Settings) -> ValidationReport:
    """Check settings for values that would break a refresh or the API."""
    report = ValidationReport()

    if settings.probe_attempts < 1:
        report.errors.append("PROBE_ATTEMPTS must be at least 1")
    if settings.probe_timeout <= 0:
        report.errors.append("PROBE_TIMEOUT_SECONDS must be positive")
    if settings.refresh_interval < 1:
        report.errors.append("REFRESH_INTERVAL_SECONDS must be at least 1")
    if not settings.package_name:
        report.errors.append("PACKAGE_NAME is empty")
    if not settings.registry_url.startswith(("http://", "https://")):
        report.errors.append(f"Invalid REGISTRY_URL: {settings.registry_url}")

    if settings.store_backend not in STORE_BACKENDS:
        report.errors.append(
            f"Unknown STORE_BACKEND {settings.store_backend!r} "
            f"(expected one of: {', '.join(STORE_BACKENDS)})"
        )
    elif settings.store_backend == "cloudflare" and not settings.has_cloudflare():
        report.errors.append(
            "STORE_BACKEND=cloudflare needs CLOUDFLARE_ACCOUNT_ID, "
            "CLOUDFLARE_KV_NAMESPACE_ID and CLOUDFLARE_API_TOKEN"
        )
    elif settings.store_backend == "memory":
        report.warnings.append("STORE_BACKEND=memory: cache is lost on restart")

    seen = set()
    for mirror in settings.mirrors:
        if VERSION_PLACEHOLDER not in mirror.template:
            report.errors.append(f"Mirror {mirror.name!r} template has no {VERSION_PLACEHOLDER}")
        if mirror.name in seen:
            report.errors.append(f"Duplicate mirror name {mirror.name!r}")
        seen.add(mirror.name)

    if not settings.refresh_secret:
        report.warnings.append("REFRESH_SECRET not set; /api/refresh will reject every request")

    return report
