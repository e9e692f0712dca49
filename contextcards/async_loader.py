"""
Background card loading.

AsyncCardLoader runs CardLoader.load on a single worker thread. Each
force_load() starts a new generation; a result is delivered to the listener
only if its generation is still current when it completes. Older results are
handed to on_discard_result() instead and never delivered stale.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol

from .domain import CardRecord
from .loader import CardLoader


logger = logging.getLogger(__name__)


class CardContentLoaderListener(Protocol):
    def on_finish_card_loading(self, cards: list[CardRecord]) -> None: ...


class AsyncCardLoader:
    """
    Single-slot asynchronous loader.

    At most one result is delivered per generation; ``reset()`` and
    ``abandon()`` invalidate whatever is in flight.
    """

    def __init__(
        self,
        loader: CardLoader,
        listener: Optional[CardContentLoaderListener] = None,
    ):
        self.loader = loader
        self.listener = listener
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="card-loader"
        )
        self._lock = threading.Lock()
        self._generation = 0
        self._result: Optional[list[CardRecord]] = None
        self._pending: Optional[Future] = None
        self._started = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_loading(self) -> Optional[Future]:
        """Deliver the cached result if there is one, otherwise load."""
        with self._lock:
            self._started = True
            cached = self._result
        if cached is not None:
            self._deliver(cached)
            return None
        return self.force_load()

    def force_load(self) -> Future:
        """Start a new load, superseding any load still in flight."""
        with self._lock:
            self._started = True
            self._generation += 1
            generation = self._generation
            future = self._executor.submit(self._run, generation)
            self._pending = future
        return future

    def stop_loading(self) -> None:
        """Stop delivering results; loads already running still finish."""
        with self._lock:
            self._started = False

    def abandon(self) -> None:
        """Discard the result of any load in flight."""
        with self._lock:
            self._generation += 1
            self._pending = None

    def reset(self) -> None:
        """Abandon in-flight work and drop the cached result."""
        with self._lock:
            self._generation += 1
            self._pending = None
            self._started = False
            stale, self._result = self._result, None
        if stale is not None:
            self.on_discard_result(stale)

    def shutdown(self, wait: bool = True) -> None:
        self.reset()
        self._executor.shutdown(wait=wait)

    @property
    def result(self) -> Optional[list[CardRecord]]:
        return self._result

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    def on_discard_result(self, result: list[CardRecord]) -> None:
        """Called with results that will never be delivered."""

    # -------------------------------------------------------------------------
    # Worker
    # -------------------------------------------------------------------------

    def load_in_background(self) -> list[CardRecord]:
        try:
            return self.loader.load()
        except Exception:
            logger.error("Card load failed, no cards loaded", exc_info=True)
            return []

    def _run(self, generation: int) -> list[CardRecord]:
        result = self.load_in_background()

        with self._lock:
            current = generation == self._generation
            deliver = current and self._started
            previous = None
            if current:
                previous, self._result = self._result, result
                self._pending = None

        if not current:
            logger.debug("Discarding superseded load (generation %d)", generation)
            self.on_discard_result(result)
            return result

        if previous is not None and previous is not result:
            self.on_discard_result(previous)
        if deliver:
            self._deliver(result)
        return result

    def _deliver(self, result: list[CardRecord]) -> None:
        if self.listener is not None:
            self.listener.on_finish_card_loading(result)
