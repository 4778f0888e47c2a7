"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "cineresolver",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": "cineresolver/0.1.0",
    },
    "browser": {
        "headless": True,
        "navigation_timeout_ms": 30_000,
        "settle_delay_ms": 5_000,
        "max_sessions": None,  # Derived from detected resources when unset
        "stealth": True,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "ttl_seconds": 3600,
        "max_entries": 10_000,
    },
    "providers": {
        "goodstream": {
            "base_url": "https://goodstream.one",
            "direct_api": True,
        },
    },
}
