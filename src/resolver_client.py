"""Public resolver client bound to one models repository."""
from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, Optional, Union

from constants import Constants
from errors import ModelResolutionError, ResolverError
from common.logging_utils import extra_context, safe_url
from fetchers import ModelFetcher, create_fetcher
from resolution import DependencyResolver, ResolutionStrategy

logger = logging.getLogger(__name__)


class ResolverClient:
    """Resolve DTMIs against a local or remote models repository.

    The repository location, fetcher and default strategy are fixed at
    construction; each ``resolve`` call works on its own context, so one
    client may serve concurrent callers.
    """

    def __init__(
        self,
        repository_location: Optional[str] = None,
        fetcher: Optional[ModelFetcher] = None,
        resolution: ResolutionStrategy = ResolutionStrategy.FULL,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client.

        Args:
            repository_location: Base URL or local directory. Defaults to the
                MODELS_REPOSITORY_URL environment variable, then the public
                repository.
            fetcher: Fetcher to use instead of one derived from the location.
            resolution: Default strategy for ``resolve``.
            max_workers: Upper bound on concurrent fetches per call.
            timeout: Request timeout in seconds for remote repositories.

        Raises:
            ValueError: If the location scheme is not supported.
        """
        self.repository_location = (
            repository_location
            or os.environ.get(Constants.ENV_REPOSITORY_URL)
            or Constants.DEFAULT_REPOSITORY_URL
        )
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher if fetcher is not None else create_fetcher(
            self.repository_location, timeout=timeout
        )
        self.resolution = resolution
        self._resolver = DependencyResolver(self.fetcher, max_workers=max_workers)
        logger.debug(
            "Client initialized with %s fetcher for %s",
            type(self.fetcher).__name__,
            safe_url(self.repository_location),
            extra=extra_context(
                event="client_init",
                component="resolver_client",
                target=safe_url(self.repository_location),
                resolution=resolution.value,
            ),
        )

    def resolve(
        self,
        dtmis: Union[str, Iterable[str]],
        resolution: Optional[ResolutionStrategy] = None,
    ) -> Dict[str, str]:
        """Resolve one or more DTMIs into a mapping of identifier to model content.

        Args:
            dtmis: A single identifier or an ordered collection of them.
            resolution: Strategy for this call only; the client default
                otherwise.

        Returns:
            Dict mapping each identifier in the closure to its raw JSON.

        Raises:
            ResolverError: On any failure; ``kind`` and ``dtmi`` name the
                category and the offending identifier.
        """
        requested = [dtmis] if isinstance(dtmis, str) else list(dtmis)
        strategy = resolution or self.resolution
        try:
            return self._resolver.resolve(requested, strategy)
        except ModelResolutionError as exc:
            error = ResolverError.from_failure(exc)
            logger.error(
                "%s",
                error.message,
                extra=extra_context(
                    event="resolve",
                    component="resolver_client",
                    outcome=exc.kind.value,
                    dtmi=exc.dtmi,
                ),
            )
            raise error from exc

    def close(self) -> None:
        """Release resources held by a fetcher this client created."""
        if self._owns_fetcher:
            close = getattr(self.fetcher, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "ResolverClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
