"""
Mirror Templates — CDN URL templates probed on every refresh.

A template is a URL containing ``{version}`` and, optionally, ``{package}``.
Two presets ship with the service; a custom set can be given as JSON via
the MIRRORS env var (see ``config.loader``).

Presets:
    worker  — jsdelivr, unpkg, cdnjs, zstatic, npmmirror (build/ assets)
    classic — staticfile, bootcdn, zstatic, sustech, cdnjs, npmmirror
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import ConfigError

VERSION_PLACEHOLDER = "{version}"
PACKAGE_PLACEHOLDER = "{package}"


@dataclass(frozen=True)
class MirrorTemplate:
    """A named CDN URL template."""

    name: str
    template: str

    def url_for(self, version: str, package: str = "") -> str:
        """Substitute package and version into the template."""
        url = self.template
        if package:
            url = url.replace(PACKAGE_PLACEHOLDER, package)
        return url.replace(VERSION_PLACEHOLDER, version)


MIRROR_PRESETS: Dict[str, List[MirrorTemplate]] = {
    "worker": [
        MirrorTemplate(
            "jsdelivr",
            "https://cdn.jsdelivr.net/npm/{package}@{version}/source/js/build/main.js",
        ),
        MirrorTemplate(
            "unpkg",
            "https://unpkg.com/{package}@{version}/source/js/build/main.js",
        ),
        MirrorTemplate(
            "cdnjs",
            "https://cdnjs.cloudflare.com/ajax/libs/{package}/{version}/source/js/build/main.js",
        ),
        MirrorTemplate(
            "zstatic",
            "https://s4.zstatic.net/ajax/libs/{package}/{version}/source/js/build/main.js",
        ),
        MirrorTemplate(
            "npmmirror",
            "https://registry.npmmirror.com/{package}/{version}/files/source/js/build/main.js",
        ),
    ],
    "classic": [
        MirrorTemplate(
            "staticfile",
            "https://cdn.staticfile.org/{package}/{version}/js/main.js",
        ),
        MirrorTemplate(
            "bootcdn",
            "https://cdn.bootcdn.net/ajax/libs/{package}/{version}/js/main.js",
        ),
        MirrorTemplate(
            "zstatic",
            "https://s4.zstatic.net/ajax/libs/{package}/{version}/js/main.js",
        ),
        MirrorTemplate(
            "sustech",
            "https://mirrors.sustech.edu.cn/cdnjs/ajax/libs/{package}/{version}/js/main.js",
        ),
        MirrorTemplate(
            "cdnjs",
            "https://cdnjs.cloudflare.com/ajax/libs/{package}/{version}/js/main.js",
        ),
        MirrorTemplate(
            "npmmirror",
            "https://registry.npmmirror.com/{package}/{version}/files/source/js/main.js",
        ),
    ],
}

DEFAULT_PRESET = "worker"


def parse_mirrors(raw: str) -> List[MirrorTemplate]:
    """
    Parse a JSON object of ``{"name": "template", ...}`` into templates.

    Order is preserved. Raises ConfigError on invalid input.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid MIRRORS JSON: {e}") from e

    if not isinstance(data, dict) or not data:
        raise ConfigError("MIRRORS must be a non-empty JSON object of name -> URL template")

    mirrors = []
    for name, template in data.items():
        if not isinstance(template, str) or not template.strip():
            raise ConfigError(f"Mirror {name!r} has an empty or non-string template")
        mirrors.append(MirrorTemplate(str(name), template.strip()))
    return mirrors


def resolve_mirrors(preset: str, custom: Optional[str] = None) -> List[MirrorTemplate]:
    """Return the custom mirror list if given, else the named preset."""
    if custom:
        return parse_mirrors(custom)

    key = (preset or DEFAULT_PRESET).strip().lower()
    if key not in MIRROR_PRESETS:
        known = ", ".join(sorted(MIRROR_PRESETS))
        raise ConfigError(f"Unknown mirror preset {preset!r} (known: {known})")
    return list(MIRROR_PRESETS[key])
