"""Dependency resolution engine.

Walks the dependency graph of the requested models breadth-first. Each wave
of pending identifiers is fetched concurrently on a per-call thread pool,
while the calling thread alone updates the resolution context, so the
visited check-and-insert needs no locking. The first failure in a wave
cancels the fetches that have not started and propagates; nothing partial is
ever returned.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from constants import Constants
from errors import DtmiCasingError, ModelNotFoundError, ModelParseError, ModelResolutionError
from common.logging_utils import extra_context, is_debug_enabled, Timer
from dtmi import dtmi_to_path, validate_dtmi
from .extractor import parse_expanded, parse_model
from .models import ModelDocument, ResolutionContext, ResolutionStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _attribute(exc: ModelResolutionError, dtmi: str) -> None:
    """Attach the identifier being processed to a failure raised beneath it."""
    if exc.dtmi is None:
        exc.dtmi = dtmi


def _check_root(requested: str, parsed: str, location: str) -> None:
    if parsed == requested:
        return
    if parsed.lower() == requested.lower():
        raise DtmiCasingError(requested, parsed)
    raise ModelNotFoundError(
        location,
        dtmi=requested,
        reason=f'Model content at "{location}" declares "{parsed}" instead of "{requested}".',
    )


class DependencyResolver:
    """Resolve identifiers to model content plus their dependency closure."""

    def __init__(self, fetcher, max_workers: Optional[int] = None):
        """Initialize the resolver.

        Args:
            fetcher: Object providing ``fetch(path)`` and ``location_of(path)``.
            max_workers: Upper bound on concurrent fetches within one call.
        """
        self.fetcher = fetcher
        self.max_workers = max_workers or Constants.MAX_WORKERS

    def resolve(
        self,
        dtmis: Iterable[str],
        strategy: ResolutionStrategy = ResolutionStrategy.FULL,
    ) -> Dict[str, str]:
        """Resolve ``dtmis`` under ``strategy``.

        Returns:
            Dict mapping every identifier in the closure to its raw content.

        Raises:
            ModelResolutionError: Subclass describing the first failure,
                attributed to the identifier that caused it.
        """
        requested = self._prepare(dtmis)
        context = ResolutionContext()
        with Timer() as t:
            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="dtmi-fetch"
            ) as executor:
                if strategy is ResolutionStrategy.TRY_FROM_EXPANDED:
                    fallback = self._resolve_expanded(requested, context, executor)
                else:
                    fallback = requested
                for dtmi in fallback:
                    context.enqueue(dtmi)
                self._drain(
                    context,
                    executor,
                    with_dependencies=strategy is not ResolutionStrategy.DISABLED,
                )
        logger.debug(
            "Resolved %d model(s)",
            len(context.results),
            extra=extra_context(
                event="resolve",
                component="engine",
                action=strategy.value,
                outcome="success",
                count=len(context.results),
                duration_ms=t.duration_ms(),
            ),
        )
        return context.results

    @staticmethod
    def _prepare(dtmis: Iterable[str]) -> List[str]:
        """Validate every requested identifier, then drop duplicates in order."""
        requested = list(dtmis)
        for dtmi in requested:
            validate_dtmi(dtmi)
        return list(dict.fromkeys(requested))

    def _run_wave(
        self,
        executor: Executor,
        work: Callable[[str], T],
        dtmis: List[str],
    ) -> List[T]:
        """Run ``work`` for each identifier concurrently, preserving input order.

        A failing task flags the wave before it completes, so tasks that start
        afterwards return without fetching; their results are never read
        because the failure propagates.
        """
        failed = threading.Event()

        def guarded(dtmi: str) -> Optional[T]:
            if failed.is_set():
                logger.debug("Skipping %s after an earlier failure", dtmi)
                return None
            try:
                return work(dtmi)
            except BaseException:
                failed.set()
                raise

        futures = {executor.submit(guarded, dtmi): index for index, dtmi in enumerate(dtmis)}
        results: List[Optional[T]] = [None] * len(dtmis)
        try:
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise
        return results  # type: ignore[return-value]

    def _drain(
        self,
        context: ResolutionContext,
        executor: Executor,
        with_dependencies: bool,
    ) -> None:
        while context.pending:
            wave = list(context.pending)
            context.pending.clear()
            documents = self._run_wave(executor, self._fetch_model, wave)
            for document in documents:
                if with_dependencies:
                    queued = [dep for dep in document.dependencies if context.enqueue(dep)]
                    if queued and is_debug_enabled(logger):
                        logger.debug(
                            "Queued dependencies of %s: %s",
                            document.dtmi,
                            ", ".join(queued),
                            extra=extra_context(
                                event="dependencies",
                                component="engine",
                                dtmi=document.dtmi,
                                count=len(queued),
                            ),
                        )
                context.store(document.dtmi, document.content)

    def _fetch_model(self, dtmi: str) -> ModelDocument:
        """Fetch and parse the model for ``dtmi``, verifying its declared root."""
        try:
            path = dtmi_to_path(dtmi)
            location = self.fetcher.location_of(path)
            logger.debug("Fetching %s from %s", dtmi, location)
            content = self.fetcher.fetch(path)
            if content is None:
                raise ModelNotFoundError(location, dtmi=dtmi)
            document = parse_model(content, location)
            _check_root(dtmi, document.dtmi, location)
            return document
        except ModelResolutionError as exc:
            _attribute(exc, dtmi)
            raise

    def _fetch_expanded(self, dtmi: str) -> Optional[Dict[str, str]]:
        """Fetch the expanded document for ``dtmi``; None when it does not exist."""
        try:
            path = dtmi_to_path(dtmi, expanded=True)
            location = self.fetcher.location_of(path)
            logger.debug("Fetching expanded %s from %s", dtmi, location)
            content = self.fetcher.fetch(path)
            if content is None:
                logger.debug("No expanded document for %s; resolving dependencies individually", dtmi)
                return None
            models = parse_expanded(content, location)
            if dtmi not in models:
                for declared in models:
                    if declared.lower() == dtmi.lower():
                        raise DtmiCasingError(dtmi, declared)
                raise ModelParseError(location, f'expanded document does not contain "{dtmi}"')
            return models
        except ModelResolutionError as exc:
            _attribute(exc, dtmi)
            raise

    def _resolve_expanded(
        self,
        requested: List[str],
        context: ResolutionContext,
        executor: Executor,
    ) -> List[str]:
        """Fetch expanded documents; return the identifiers that need full resolution."""
        expansions = self._run_wave(executor, self._fetch_expanded, requested)
        fallback = []
        for dtmi, models in zip(requested, expansions):
            if models is None:
                fallback.append(dtmi)
                continue
            for model_id, content in models.items():
                context.mark(model_id)
                context.store(model_id, content)
        return fallback
