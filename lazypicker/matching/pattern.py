"""Query pattern parsing and default scoring.

A query is a whitespace-separated list of terms, all of which must match:

- ``abc``   fuzzy subsequence
- ``'abc``  exact substring
- ``^abc``  prefix
- ``abc$``  suffix
- ``!abc``  must not contain (combinable: ``!^abc``, ``!abc$``)
- ``%name`` following terms match column ``name`` (shortest prefix match)

``\\`` escapes the next character, so ``\\ `` is a literal space. Terms with
an uppercase letter match case-sensitively; others ignore case.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import PatternError

FUZZY = "fuzzy"
EXACT = "exact"
PREFIX = "prefix"
SUFFIX = "suffix"

BOUNDARY_CHARS = "/_- .:"


@dataclass(frozen=True)
class Term:
    kind: str
    text: str
    column: int | None = None
    negate: bool = False
    case_sensitive: bool = False


@dataclass(frozen=True)
class Pattern:
    source: str
    terms: tuple[Term, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.terms

    def score(self, columns: Sequence[str], active_column: int = 0) -> int | None:
        """Return the combined score of all terms, or ``None`` when any fails."""
        total = 0
        for term in self.terms:
            column = active_column if term.column is None else term.column
            text = columns[column] if 0 <= column < len(columns) else ""
            term_score = score_term(term, text)
            if term_score is None:
                return None
            total += term_score
        return total


def _tokenize(query: str) -> list[tuple[str, bool]]:
    """Split on unescaped whitespace; flag tokens whose first char was escaped."""
    tokens: list[tuple[str, bool]] = []
    buf: list[str] = []
    escaped_first = False
    i = 0
    n = len(query)
    while i < n:
        ch = query[i]
        if ch == "\\" and i + 1 < n:
            if not buf:
                escaped_first = True
            buf.append(query[i + 1])
            i += 2
            continue
        if ch.isspace():
            if buf:
                tokens.append(("".join(buf), escaped_first))
                buf = []
            escaped_first = False
            i += 1
            continue
        buf.append(ch)
        i += 1
    if buf:
        tokens.append(("".join(buf), escaped_first))
    return tokens


def resolve_column(prefix: str, names: Sequence[str]) -> int:
    """Return the index of the shortest column name starting with ``prefix``."""
    candidates = [(len(name), idx) for idx, name in enumerate(names) if name.startswith(prefix)]
    if not candidates:
        raise PatternError(f"no column named {prefix!r}")
    return min(candidates)[1]


def parse_pattern(query: str, column_names: Sequence[str] = ("0",)) -> Pattern:
    """Parse ``query`` into a :class:`Pattern`; raise :class:`PatternError`."""
    terms: list[Term] = []
    column: int | None = None
    for token, escaped in _tokenize(query):
        if escaped:
            terms.append(Term(FUZZY, token, column, case_sensitive=token != token.lower()))
            continue
        if token.startswith("%"):
            name = token[1:]
            if not name:
                raise PatternError("column selector '%' needs a column name")
            column = resolve_column(name, column_names)
            continue

        text = token
        negate = text.startswith("!")
        if negate:
            text = text[1:]
        kind = EXACT if negate else FUZZY
        if text.startswith("'"):
            kind = EXACT
            text = text[1:]
        elif text.startswith("^"):
            kind = PREFIX
            text = text[1:]
        elif text.endswith("$") and len(text) > 1:
            kind = SUFFIX
            text = text[:-1]
        elif text == "$":
            text = ""
        if not text:
            raise PatternError(f"operator without text in term {token!r}")
        terms.append(Term(kind, text, column, negate, text != text.lower()))
    return Pattern(query, tuple(terms))


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Greedy subsequence score rewarding runs and word boundaries."""
    if not query:
        return 0
    score = 0
    prev_idx = -1
    run = 0
    for needle in query:
        idx = candidate.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            run = 0
            score -= min(40, (idx - prev_idx - 1) * 2)
        if idx == 0 or candidate[idx - 1] in BOUNDARY_CHARS:
            score += 35
        prev_idx = idx
    return score - len(candidate) // 5


def score_term(term: Term, text: str) -> int | None:
    needle = term.text
    haystack = text
    if not term.case_sensitive:
        needle = needle.casefold()
        haystack = haystack.casefold()

    if term.kind == FUZZY:
        result = fuzzy_score(needle, haystack)
    elif term.kind == PREFIX:
        result = 1_000 - len(haystack) if haystack.startswith(needle) else None
    elif term.kind == SUFFIX:
        result = 1_000 - len(haystack) if haystack.endswith(needle) else None
    else:
        idx = haystack.find(needle)
        result = None if idx < 0 else 1_000 - idx * 5 - len(haystack)

    if term.negate:
        return 0 if result is None else None
    return result


__all__ = [
    "Pattern",
    "Term",
    "fuzzy_score",
    "parse_pattern",
    "resolve_column",
    "score_term",
]
