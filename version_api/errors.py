"""
Error types shared across the service.

Probe and registry failures are normally absorbed (``False`` / ``"unknown"``).
These exceptions cover the failures that must abort a refresh or a request.
"""

from __future__ import annotations


class VersionApiError(Exception):
    """Base class for service errors."""


class RegistryError(VersionApiError):
    """The registry could not be queried (raised only in strict mode)."""


class StoreError(VersionApiError):
    """The key-value store could not be read or written."""


class ConfigError(VersionApiError):
    """Configuration is missing or invalid."""
