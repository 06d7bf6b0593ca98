"""Default incremental ranking engine.

The worker adapter treats the engine as opaque: any object offering
``push``, ``reparse``, ``tick``, ``ranked`` and ``shutdown`` can replace it.
This implementation scores on one daemon thread. When only new items
arrived it scores just those; a new pattern restarts the pass, and a pass in
flight is abandoned as soon as it is superseded.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from .pattern import Pattern

logger = logging.getLogger(__name__)

SCORE_CHUNK_SIZE = 2048


@dataclass(frozen=True)
class EngineStatus:
    changed: bool
    running: bool


class FuzzyRankingEngine:
    def __init__(self, thread_name: str = "lazypicker-ranker") -> None:
        self._thread_name = thread_name
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._items: list[tuple[str, ...]] = []
        self._pattern = Pattern("")
        self._active_column = 0
        self._pattern_version = 0
        self._scored_version = -1
        self._scored_upto = 0
        self._matches: list[tuple[int, int]] = []
        self._ranked: tuple[tuple[int, int], ...] = ()
        self._changed = False
        self._running = False
        self._closed = False
        self._thread: threading.Thread | None = None

    def _pending_locked(self) -> bool:
        return self._scored_version != self._pattern_version or self._scored_upto < len(self._items)

    def _ensure_thread(self) -> None:
        if self._thread is not None or self._closed:
            return
        self._thread = threading.Thread(target=self._worker, name=self._thread_name, daemon=True)
        self._thread.start()

    def push(self, items: Iterable[tuple[str, ...]]) -> None:
        with self._lock:
            self._items.extend(items)
            self._running = True
            self._ensure_thread()
        self._wake.set()

    def reparse(self, pattern: Pattern, active_column: int = 0) -> None:
        with self._lock:
            self._pattern = pattern
            self._active_column = active_column
            self._pattern_version += 1
            self._running = True
            self._ensure_thread()
        self._wake.set()

    def tick(self) -> EngineStatus:
        """Report and reset whether the ranking changed since the last tick."""
        with self._lock:
            changed = self._changed
            self._changed = False
            return EngineStatus(changed=changed, running=self._running)

    def ranked(self) -> tuple[tuple[int, int], ...]:
        """Return ``(index, score)`` pairs, best first, ties by index."""
        with self._lock:
            return self._ranked

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
            self._running = False
        self._wake.set()

    def _worker(self) -> None:
        while True:
            self._wake.wait()
            with self._lock:
                self._wake.clear()
                if self._closed:
                    return
                if not self._pending_locked():
                    self._running = False
                    continue
                version = self._pattern_version
                pattern = self._pattern
                active_column = self._active_column
                if self._scored_version == version:
                    start = self._scored_upto
                    matches = list(self._matches)
                else:
                    start = 0
                    matches = []
                end = len(self._items)
                batch = self._items[start:end]

            abandoned = False
            for chunk_start in range(0, len(batch), SCORE_CHUNK_SIZE):
                if self._pattern_version != version or self._closed:
                    abandoned = True
                    break
                for offset, columns in enumerate(batch[chunk_start : chunk_start + SCORE_CHUNK_SIZE]):
                    score = pattern.score(columns, active_column)
                    if score is not None:
                        matches.append((start + chunk_start + offset, score))

            with self._lock:
                if abandoned or self._pattern_version != version:
                    logger.debug("ranking pass for version %d superseded", version)
                    self._wake.set()
                    continue
                self._matches = matches
                self._scored_version = version
                self._scored_upto = end
                self._ranked = tuple(sorted(matches, key=lambda item: (-item[1], item[0])))
                self._changed = True
                if self._pending_locked():
                    self._wake.set()
                else:
                    self._running = False


__all__ = ["EngineStatus", "FuzzyRankingEngine"]
