"""Terminal input decoding into normalized trigger events."""

from .reader import InputEvent, KeyReader

__all__ = ["InputEvent", "KeyReader"]
