"""Shared constants for resolvers."""

from __future__ import annotations

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_SETTLE_DELAY_MS = 5_000
DEFAULT_CLIENT_TIMEOUT = 15.0

# Rough resident size of one headless Chromium session
BROWSER_SESSION_MEMORY_BYTES = 512 * 1024**2
MAX_AUTO_BROWSER_SESSIONS = 8
