"""Cache client exceptions."""

from __future__ import annotations


class KvlinkError(Exception):
    """Base class for all kvlink errors."""


class ConfigurationError(KvlinkError, ValueError):
    """Raised when connection settings are invalid (empty host, bad port)."""
