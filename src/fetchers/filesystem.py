"""Filesystem model fetcher: reads models from a local repository tree."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from constants import RepositoryKinds
from errors import FetchTransportError
from common.logging_utils import extra_context, is_debug_enabled
from dtmi import local_root

logger = logging.getLogger(__name__)


class FilesystemFetcher:
    """Fetch model content from a directory laid out by the path convention."""

    kind = RepositoryKinds.LOCAL

    def __init__(self, root: Union[str, Path]):
        """Initialize the fetcher.

        Args:
            root: Repository root directory, as a path or ``file://`` URI.
        """
        self.root = Path(local_root(str(root)))

    def location_of(self, path: str) -> str:
        """Return the absolute filesystem location of a relative model path."""
        return str(self.root / path)

    def fetch(self, path: str) -> Optional[str]:
        """Read the content at ``path`` relative to the repository root.

        Returns:
            The file content, or None when no file exists there.

        Raises:
            FetchTransportError: If the file exists but cannot be read.
        """
        target = self.root / path
        if is_debug_enabled(logger):
            logger.debug(
                "Reading model file",
                extra=extra_context(
                    event="fetch",
                    component="filesystem_fetcher",
                    action="read",
                    target=str(target),
                ),
            )
        try:
            return target.read_text(encoding="utf-8")
        except (FileNotFoundError, NotADirectoryError):
            logger.debug("Model file not found: %s", target)
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise FetchTransportError(str(target), str(exc)) from exc
