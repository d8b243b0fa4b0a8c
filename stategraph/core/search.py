"""Cooperative cancellation and progress reporting shared by the searches.

A search calls `checkpoint()` after every state expansion and `emit()` for
every result. Both observe the cancellation predicate; a set flag unwinds the
search with `SearchCancelled`. Results are append-only, so whatever was
emitted before cancellation stays valid.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .. import config
from .errors import SearchCancelled

T = TypeVar("T")

ProgressCallback = Callable[[float], None]
CancelPredicate = Callable[[], bool]


class CancellationToken:
    """Thread-safe cancellation flag passed explicitly to each search."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self._event.is_set()


class LimitReached(Exception):
    """Internal signal: the soft result cap was hit."""


@dataclass
class SearchReport(Generic[T]):
    """Outcome of a completed (or capped) search."""

    results: List[T] = field(default_factory=list)
    expanded: int = 0
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.results)


class SearchController(Generic[T]):
    def __init__(
        self,
        on_result: Optional[Callable[[T], Any]] = None,
        is_cancelled: Optional[CancelPredicate] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_results: Optional[int] = None,
        progress_interval_s: Optional[float] = None,
    ):
        if max_results is not None and max_results < 1:
            raise ValueError(f"max_results must be positive, got {max_results}")
        self._on_result = on_result
        self._is_cancelled = is_cancelled
        self._on_progress = on_progress
        self.max_results = max_results
        self._interval = config.PROGRESS_INTERVAL_S if progress_interval_s is None else progress_interval_s
        self._last_progress = 0.0
        self.results: List[T] = []
        self.expanded = 0

    @property
    def cancelled(self) -> bool:
        return bool(self._is_cancelled is not None and self._is_cancelled())

    def _raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SearchCancelled(self.results, self.expanded)

    def start(self) -> None:
        self._raise_if_cancelled()
        self._report(0.0, force=True)

    def checkpoint(self, fraction: float) -> None:
        """Count one state expansion, then observe cancellation and maybe report progress."""
        self.expanded += 1
        self._raise_if_cancelled()
        self._report(fraction)

    def emit(self, result: T) -> None:
        self._raise_if_cancelled()
        self.results.append(result)
        if self._on_result is not None:
            self._on_result(result)
        if self.max_results is not None and len(self.results) >= self.max_results:
            raise LimitReached()

    def finish(self, truncated: bool = False) -> SearchReport[T]:
        self._report(1.0, force=True)
        return SearchReport(results=list(self.results), expanded=self.expanded, truncated=truncated)

    def _report(self, fraction: float, force: bool = False) -> None:
        if self._on_progress is None:
            return
        now = time.monotonic()
        if not force and now - self._last_progress < self._interval:
            return
        self._last_progress = now
        self._on_progress(min(max(fraction, 0.0), 1.0))
