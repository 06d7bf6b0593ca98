"""Non-interactive ranking.

``filter_matches`` drives a :class:`MatchWorker` to completion without a
terminal: it appends every line, applies the query, and polls until the
ranking has settled over all records or the timeout expires.
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from ..columns import ColumnSplitter, SplitRule, build_splitter
from .store import Record
from .worker import MatchWorker, Snapshot

DEFAULT_FILTER_TIMEOUT = 2.0
POLL_INTERVAL_SECONDS = 0.005


def filter_matches(
    lines: Iterable[str],
    query: str,
    timeout: float = DEFAULT_FILTER_TIMEOUT,
    splitter: ColumnSplitter | None = None,
    active_column: int = 0,
) -> list[Record]:
    """Return the records of ``lines`` matching ``query``, best first.

    When ranking has not settled after ``timeout`` seconds the best partial
    ranking seen so far is returned. A malformed query raises
    :class:`~lazypicker.errors.PatternError`.
    """
    worker = MatchWorker(splitter if splitter is not None else build_splitter(SplitRule()))
    try:
        total = len(worker.append(lines))
        if not worker.requery(query, active_column) and worker.last_error is not None:
            raise worker.last_error
        deadline = time.monotonic() + timeout
        snapshot: Snapshot | None = None
        while True:
            polled = worker.poll()
            if polled is not None:
                snapshot = polled
                if not polled.running and polled.item_count == total:
                    break
            if time.monotonic() >= deadline:
                break
            time.sleep(POLL_INTERVAL_SECONDS)
        if snapshot is None:
            return []
        records = (worker.store.get(index) for index in snapshot.indices())
        return [record for record in records if record is not None]
    finally:
        worker.shutdown()


__all__ = ["DEFAULT_FILTER_TIMEOUT", "filter_matches"]
