"""Model content fetchers.

This package provides the two repository backends sharing one contract,
``fetch(path) -> content | None`` plus ``location_of(path)``:
- filesystem.py: local directory trees (plain paths or file:// URIs)
- remote.py: HTTP(S) repositories via requests
"""
from __future__ import annotations

import urllib.parse
from typing import Optional, Protocol

from constants import Constants
from .filesystem import FilesystemFetcher
from .remote import RemoteFetcher


class ModelFetcher(Protocol):
    """Capability consumed by the resolution engine."""

    def fetch(self, path: str) -> Optional[str]:
        ...

    def location_of(self, path: str) -> str:
        ...


def create_fetcher(location: str, timeout: Optional[float] = None) -> ModelFetcher:
    """Select a fetcher implementation from a repository location.

    Args:
        location: Base URL (http/https) or local directory / file:// URI.
        timeout: Request timeout for remote repositories.

    Raises:
        ValueError: If the location uses an unsupported scheme.
    """
    scheme = urllib.parse.urlsplit(location).scheme.lower()
    if scheme in Constants.REMOTE_SCHEMES:
        return RemoteFetcher(location, timeout=timeout)
    # Single-letter schemes are Windows drive letters.
    if scheme in Constants.LOCAL_SCHEMES or len(scheme) == 1:
        return FilesystemFetcher(location)
    raise ValueError(f"Unsupported repository location scheme: {scheme!r}")


__all__ = [
    "ModelFetcher",
    "FilesystemFetcher",
    "RemoteFetcher",
    "create_fetcher",
]
