"""ANSI-aware width, clipping, and wrapping helpers.

Preview commands frequently emit colored output; these helpers measure and
shape such lines by display columns while keeping escape sequences intact.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
SGR_RESET = "\033[0m"


def char_display_width(ch: str, col: int) -> int:
    """Return terminal width of ``ch`` when drawn at visual column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def _tokens(text: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_escape, chunk)`` pairs; non-escape chunks are single chars."""
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                yield True, match.group(0)
                i = match.end()
                continue
        yield False, text[i]
        i += 1


def display_width(text: str) -> int:
    col = 0
    for is_escape, chunk in _tokens(text):
        if not is_escape:
            col += char_display_width(chunk, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim ``text`` to ``max_cols`` display columns, keeping escapes verbatim.

    Tabs are expanded to spaces so the clip point matches rendered cells.
    """
    if max_cols <= 0 or not text:
        return ""
    out: list[str] = []
    col = 0
    for is_escape, chunk in _tokens(text):
        if is_escape:
            out.append(chunk)
            continue
        width = char_display_width(chunk, col)
        if col + width > max_cols:
            break
        out.append(" " * width if chunk == "\t" else chunk)
        col += width
    return "".join(out)


def wrap_ansi_line(text: str, width: int) -> list[str]:
    """Split a styled line into chunks no wider than ``width`` columns."""
    if width <= 0 or not text:
        return [""]
    wrapped: list[str] = []
    chunk: list[str] = []
    col = 0
    for is_escape, token in _tokens(text):
        if is_escape:
            chunk.append(token)
            continue
        token_width = char_display_width(token, col)
        if col + token_width > width and col > 0:
            wrapped.append("".join(chunk))
            chunk = []
            col = 0
            token_width = char_display_width(token, col)
        chunk.append(" " * token_width if token == "\t" else token)
        col += token_width
    wrapped.append("".join(chunk))
    return wrapped


def pad_ansi_line(text: str, width: int) -> str:
    """Clip then right-pad ``text`` with spaces to exactly ``width`` columns."""
    clipped = clip_ansi_line(text, width)
    used = display_width(clipped)
    suffix = SGR_RESET if "\x1b" in clipped else ""
    return f"{clipped}{suffix}{' ' * max(0, width - used)}"


__all__ = [
    "ANSI_ESCAPE_RE",
    "SGR_RESET",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "pad_ansi_line",
    "strip_ansi",
    "wrap_ansi_line",
]
