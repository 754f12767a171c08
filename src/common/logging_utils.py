"""Structured logging helpers shared by fetchers and the resolution engine.

Handler and level configuration belong to the host application; this
module only shapes the ``extra`` payload and guards expensive DEBUG traces.
"""
from __future__ import annotations

import logging
import time
import urllib.parse
from typing import Any, Dict, Optional

REDACTED = "[REDACTED]"


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for logger calls, dropping unset fields."""
    return {key: value for key, value in fields.items() if value is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: Optional[str]) -> str:
    """Strip credentials and query values from a URL before logging it.

    Args:
        url: URL or filesystem path; non-URL strings are returned unchanged.

    Returns:
        str: The URL with userinfo and query parameter values redacted.
    """
    if not url:
        return ""
    parts = urllib.parse.urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{REDACTED}@{netloc.rsplit('@', 1)[1]}"
    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(f"{key}={REDACTED}" for key, _ in pairs)
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, ""))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
