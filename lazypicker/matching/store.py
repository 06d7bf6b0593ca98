"""Append-only record store."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass

from ..columns import ColumnSplitter


@dataclass(frozen=True)
class Record:
    index: int
    text: str
    columns: tuple[str, ...]


class RecordStore:
    """Records indexed densely from zero in append order.

    One writer appends while any number of readers look records up; the
    list only grows, so a reader that saw length ``n`` can read ``[0, n)``
    without further locking.
    """

    def __init__(self, splitter: ColumnSplitter) -> None:
        self.splitter = splitter
        self._records: list[Record] = []
        self._lock = threading.Lock()

    def append(self, lines: Iterable[str]) -> list[Record]:
        created: list[Record] = []
        with self._lock:
            for line in lines:
                record = Record(len(self._records), line, self.splitter.split(line))
                self._records.append(record)
                created.append(record)
        return created

    def get(self, index: int) -> Record | None:
        if 0 <= index < len(self._records):
            return self._records[index]
        return None

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["Record", "RecordStore"]
