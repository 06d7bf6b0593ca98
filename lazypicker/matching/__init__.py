"""Record store, query patterns, and the asynchronous matching worker."""

from .engine import EngineStatus, FuzzyRankingEngine
from .filter import DEFAULT_FILTER_TIMEOUT, filter_matches
from .pattern import Pattern, parse_pattern
from .store import Record, RecordStore
from .worker import EMPTY_SNAPSHOT, Injector, MatchWorker, Snapshot

__all__ = [
    "DEFAULT_FILTER_TIMEOUT",
    "EMPTY_SNAPSHOT",
    "EngineStatus",
    "FuzzyRankingEngine",
    "Injector",
    "MatchWorker",
    "Pattern",
    "Record",
    "RecordStore",
    "Snapshot",
    "filter_matches",
    "parse_pattern",
]
