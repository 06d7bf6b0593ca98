"""Matching worker adapter: record store plus ranking engine.

The worker owns the current store/engine pair. ``append`` and ``requery``
only forward work; results come back through ``poll`` as generation-stamped
:class:`Snapshot` values. ``restart`` (Reload) swaps in a fresh store and
engine under a new epoch so appends from the previous source are refused.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..columns import ColumnSplitter
from ..errors import PatternError
from .engine import FuzzyRankingEngine
from .pattern import parse_pattern
from .store import Record, RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Immutable ranked view: ``matches`` holds ``(index, score)`` best first."""

    generation: int
    epoch: int
    matches: tuple[tuple[int, int], ...] = ()
    item_count: int = 0
    running: bool = False

    def __len__(self) -> int:
        return len(self.matches)

    def index_at(self, position: int) -> int | None:
        if 0 <= position < len(self.matches):
            return self.matches[position][0]
        return None

    def indices(self) -> list[int]:
        return [index for index, _ in self.matches]


EMPTY_SNAPSHOT = Snapshot(generation=0, epoch=0)


class Injector:
    """Append handle bound to one worker epoch."""

    def __init__(self, worker: MatchWorker, epoch: int) -> None:
        self._worker = worker
        self.epoch = epoch

    def push(self, lines: Iterable[str]) -> bool:
        """Append ``lines``; return ``False`` once the epoch has been replaced."""
        return self._worker._append_for_epoch(self.epoch, lines)


class MatchWorker:
    def __init__(
        self,
        splitter: ColumnSplitter,
        engine_factory: Callable[[], object] = FuzzyRankingEngine,
    ) -> None:
        self._splitter = splitter
        self._engine_factory = engine_factory
        self._lock = threading.Lock()
        self.epoch = 0
        self.store = RecordStore(splitter)
        self.engine = engine_factory()
        self._generation = 0
        self._query = ""
        self._active_column = 0
        self._pattern = None
        self.last_error: PatternError | None = None

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._splitter.names

    def append(self, lines: Iterable[str]) -> list[Record]:
        with self._lock:
            return self._append_locked(lines)

    def _append_locked(self, lines: Iterable[str]) -> list[Record]:
        records = self.store.append(lines)
        if records:
            self.engine.push([record.columns for record in records])
        return records

    def _append_for_epoch(self, epoch: int, lines: Iterable[str]) -> bool:
        with self._lock:
            if epoch != self.epoch:
                return False
            self._append_locked(lines)
            return True

    def injector(self) -> Injector:
        return Injector(self, self.epoch)

    def requery(self, query: str, active_column: int | None = None) -> bool:
        """Re-rank against ``query``.

        A malformed query leaves the engine on its last valid pattern and is
        kept in ``last_error`` for status display; returns whether the query
        was accepted.
        """
        if active_column is not None:
            self._active_column = active_column
        try:
            pattern = parse_pattern(query, self._splitter.names)
        except PatternError as exc:
            self.last_error = exc
            logger.debug("rejected query %r: %s", query, exc)
            return False
        self.last_error = None
        self._query = query
        self._pattern = pattern
        with self._lock:
            self.engine.reparse(pattern, self._active_column)
        return True

    def poll(self) -> Snapshot | None:
        """Return a new snapshot when ranking progressed since the last call."""
        with self._lock:
            engine = self.engine
            epoch = self.epoch
        status = engine.tick()
        if not status.changed:
            return None
        self._generation += 1
        return Snapshot(
            generation=self._generation,
            epoch=epoch,
            matches=engine.ranked(),
            item_count=len(self.store),
            running=status.running,
        )

    def restart(self) -> int:
        """Discard the store and start a new epoch; return the new epoch."""
        with self._lock:
            self.engine.shutdown()
            self.epoch += 1
            self.store = RecordStore(self._splitter)
            self.engine = self._engine_factory()
            if self._pattern is not None:
                self.engine.reparse(self._pattern, self._active_column)
            logger.debug("worker restarted at epoch %d", self.epoch)
            return self.epoch

    def shutdown(self) -> None:
        with self._lock:
            self.epoch += 1
            self.engine.shutdown()


__all__ = ["EMPTY_SNAPSHOT", "Injector", "MatchWorker", "Snapshot"]
