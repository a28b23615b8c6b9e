"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "kvlink",
    "environment": "dev",
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "redis": {
        "host": "localhost",
        "port": 6379,
        "password": None,
    },
    "cache": {
        "ttl_seconds": 0,
    },
}
