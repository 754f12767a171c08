"""Remote model fetcher: reads models from an HTTP(S) models repository."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from constants import Constants, RepositoryKinds
from errors import FetchTransportError
from common.http_client import safe_get
from common.logging_utils import safe_url

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


class RemoteFetcher:
    """Fetch model content relative to a repository base URL."""

    kind = RepositoryKinds.REMOTE

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the fetcher.

        Args:
            base_url: Repository origin, e.g. https://devicemodels.azure.com.
            session: Session to reuse; one is created (and owned) otherwise.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = Constants.USER_AGENT
        self._session = session

    def location_of(self, path: str) -> str:
        """Return the absolute URL of a relative model path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def fetch(self, path: str) -> Optional[str]:
        """GET the content at ``path`` relative to the base URL.

        Returns:
            The response body, or None on HTTP 404.

        Raises:
            FetchTransportError: On any other status or connection failure.
        """
        url = self.location_of(path)
        res = safe_get(
            url,
            context="models-repository",
            session=self._session,
            timeout=self.timeout,
            headers=HEADERS_JSON,
        )
        if res.status_code == 404:
            logger.debug("Model not found at %s", safe_url(url))
            return None
        if res.status_code != 200:
            raise FetchTransportError(safe_url(url), f"unexpected HTTP status {res.status_code}")
        return res.text

    def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session:
            self._session.close()
