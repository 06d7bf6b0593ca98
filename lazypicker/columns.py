"""Column model: record splitting and placeholder templates.

Every record is split into the same number of column values by one rule:
no split, a delimiter regex, or one regex per column. Templates reference
those columns (plus the query and selection) through ``{...}`` placeholders
and are used for preview/execute/reload commands and for output formatting.
"""

from __future__ import annotations

import re
import shlex
from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import ConfigError

MAX_COLUMNS = 16
DEFAULT_AUTO_COLUMNS = 6

SPLIT_NONE = "none"
SPLIT_DELIMITER = "delimiter"
SPLIT_REGEXES = "regexes"

PLACEHOLDER_LINE = ""
PLACEHOLDER_ACTIVE = "!"
PLACEHOLDER_ALL = ".."
PLACEHOLDER_SELECTION = "+"
PLACEHOLDER_QUERY = "q"
_SPECIAL_PLACEHOLDERS = frozenset(
    {PLACEHOLDER_LINE, PLACEHOLDER_ACTIVE, PLACEHOLDER_ALL, PLACEHOLDER_SELECTION, PLACEHOLDER_QUERY}
)


@dataclass(frozen=True)
class SplitRule:
    """Declarative split configuration as read from config/CLI."""

    kind: str = SPLIT_NONE
    patterns: tuple[str, ...] = ()
    names: tuple[str, ...] = ()
    max_columns: int = DEFAULT_AUTO_COLUMNS

    @classmethod
    def delimiter(cls, pattern: str, names: Sequence[str] = (), max_columns: int = DEFAULT_AUTO_COLUMNS) -> SplitRule:
        return cls(SPLIT_DELIMITER, (pattern,), tuple(names), max_columns)

    @classmethod
    def regexes(cls, patterns: Sequence[str], names: Sequence[str] = ()) -> SplitRule:
        return cls(SPLIT_REGEXES, tuple(patterns), tuple(names), max(1, len(patterns)))


@dataclass(frozen=True)
class ColumnSplitter:
    """Compiled split rule producing exactly ``len(names)`` values per line."""

    kind: str
    names: tuple[str, ...]
    regexes: tuple[re.Pattern[str], ...] = field(default=())

    @property
    def count(self) -> int:
        return len(self.names)

    def split(self, line: str) -> tuple[str, ...]:
        if self.kind == SPLIT_DELIMITER:
            return self._split_delimiter(line)
        if self.kind == SPLIT_REGEXES:
            values = []
            for regex in self.regexes[: self.count]:
                match = regex.search(line)
                values.append(match.group(0) if match else "")
            values.extend([""] * (self.count - len(values)))
            return tuple(values)
        return (line,)

    def _split_delimiter(self, line: str) -> tuple[str, ...]:
        # The last column keeps the unsplit remainder.
        values: list[str] = []
        start = 0
        for match in self.regexes[0].finditer(line):
            if len(values) >= self.count - 1:
                break
            if match.end() == match.start():
                continue
            values.append(line[start : match.start()])
            start = match.end()
        values.append(line[start:])
        values.extend([""] * (self.count - len(values)))
        return tuple(values)

    def column_index(self, key: str) -> int | None:
        """Resolve a column by name first, then by numeric position."""
        if key in self.names:
            return self.names.index(key)
        if key.isdigit():
            idx = int(key)
            if 0 <= idx < self.count:
                return idx
        return None


def build_splitter(rule: SplitRule) -> ColumnSplitter:
    """Compile ``rule``; invalid regexes or counts raise :class:`ConfigError`."""
    if rule.kind == SPLIT_NONE:
        name = rule.names[0] if rule.names else "0"
        return ColumnSplitter(SPLIT_NONE, (name,))
    if rule.kind not in {SPLIT_DELIMITER, SPLIT_REGEXES}:
        raise ConfigError(f"unknown split rule: {rule.kind!r}")
    if not rule.patterns:
        raise ConfigError(f"split rule {rule.kind!r} needs at least one pattern")

    compiled: list[re.Pattern[str]] = []
    for pattern in rule.patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ConfigError(f"invalid split regex {pattern!r}: {exc}") from exc

    if rule.names:
        names = tuple(rule.names)
    elif rule.kind == SPLIT_REGEXES:
        names = tuple(str(i) for i in range(len(compiled)))
    else:
        names = tuple(str(i) for i in range(rule.max_columns))
    if not 1 <= len(names) <= MAX_COLUMNS:
        raise ConfigError(f"column count must be between 1 and {MAX_COLUMNS}, got {len(names)}")
    if len(set(names)) != len(names):
        raise ConfigError(f"duplicate column names: {', '.join(names)}")
    return ColumnSplitter(rule.kind, names, tuple(compiled))


@dataclass(frozen=True)
class TemplateContext:
    """Values a template can reference.

    ``current`` is the highlighted record's ``(text, columns)`` pair or
    ``None``; ``selected`` holds the same pairs for the selection set.
    """

    splitter: ColumnSplitter
    current: tuple[str, tuple[str, ...]] | None
    selected: tuple[tuple[str, tuple[str, ...]], ...] = ()
    active_column: int = 0
    query: str = ""


def _scan_template(template: str):
    """Yield ``("text", str)`` and ``("key", str)`` parts of ``template``."""
    buf: list[str] = []
    i = 0
    n = len(template)
    while i < n:
        ch = template[i]
        if ch == "\\" and i + 1 < n:
            buf.append(template[i + 1])
            i += 2
            continue
        if ch == "{":
            end = template.find("}", i + 1)
            if end < 0:
                buf.append(template[i:])
                break
            if buf:
                yield "text", "".join(buf)
                buf = []
            yield "key", template[i + 1 : end]
            i = end + 1
            continue
        buf.append(ch)
        i += 1
    if buf:
        yield "text", "".join(buf)


def validate_template(template: str, splitter: ColumnSplitter) -> None:
    for kind, value in _scan_template(template):
        if kind != "key" or value in _SPECIAL_PLACEHOLDERS:
            continue
        if splitter.column_index(value) is None:
            raise ConfigError(f"unknown placeholder {{{value}}} in template {template!r}")


def format_template(template: str, context: TemplateContext, quote: bool = False) -> str:
    """Substitute placeholders in ``template``.

    With ``quote`` every substituted value is shell-quoted; multi-valued
    placeholders (``{..}``, ``{+}``) quote each value and join with spaces.
    An empty selection makes ``{+}`` fall back to the highlighted record.
    """
    wrap = shlex.quote if quote else (lambda value: value)
    out: list[str] = []
    current_text, current_columns = context.current if context.current is not None else ("", ())

    for kind, value in _scan_template(template):
        if kind == "text":
            out.append(value)
            continue
        if value == PLACEHOLDER_LINE:
            out.append(wrap(current_text))
        elif value == PLACEHOLDER_QUERY:
            out.append(wrap(context.query))
        elif value == PLACEHOLDER_ACTIVE:
            column = current_columns[context.active_column] if context.active_column < len(current_columns) else ""
            out.append(wrap(column))
        elif value == PLACEHOLDER_ALL:
            out.append(" ".join(wrap(column) for column in current_columns))
        elif value == PLACEHOLDER_SELECTION:
            chosen = context.selected
            if not chosen and context.current is not None:
                chosen = (context.current,)
            out.append(" ".join(wrap(text) for text, _ in chosen))
        else:
            idx = context.splitter.column_index(value)
            column = current_columns[idx] if idx is not None and idx < len(current_columns) else ""
            out.append(wrap(column))
    return "".join(out)


__all__ = [
    "ColumnSplitter",
    "MAX_COLUMNS",
    "SplitRule",
    "TemplateContext",
    "build_splitter",
    "format_template",
    "validate_template",
]
