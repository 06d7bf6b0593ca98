"""Query line editing and history.

Every edit that changes the text triggers a requery immediately. History
entries only replace the query text; they never touch the record store.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from ..dispatch.triggers import EVENT_QUERY_CHANGE
from .state import PickerState


def _word_start_before(text: str, pos: int) -> int:
    while pos > 0 and text[pos - 1].isspace():
        pos -= 1
    while pos > 0 and not text[pos - 1].isspace():
        pos -= 1
    return pos


def _word_end_after(text: str, pos: int) -> int:
    n = len(text)
    while pos < n and text[pos].isspace():
        pos += 1
    while pos < n and not text[pos].isspace():
        pos += 1
    return pos


class QueryController:
    def __init__(
        self,
        state: PickerState,
        requery: Callable[[str], None],
        history: Sequence[str] = (),
    ) -> None:
        self.state = state
        self._requery = requery
        self.history = list(history)

    def _replace(self, text: str, cursor: int, *, from_history: bool = False) -> bool:
        state = self.state
        cursor = max(0, min(cursor, len(text)))
        changed = text != state.query
        if not changed and cursor == state.cursor:
            return False
        state.query = text
        state.cursor = cursor
        state.dirty = True
        if not from_history:
            state.history_index = None
        if changed:
            state.highlighted = 0
            state.results_offset = 0
            state.emit(EVENT_QUERY_CHANGE)
            self._requery(text)
        return True

    def insert(self, text: str) -> bool:
        state = self.state
        return self._replace(state.query[: state.cursor] + text + state.query[state.cursor :], state.cursor + len(text))

    def delete_char(self) -> bool:
        """Delete the character before the cursor."""
        state = self.state
        if state.cursor == 0:
            return False
        return self._replace(state.query[: state.cursor - 1] + state.query[state.cursor :], state.cursor - 1)

    def delete_word(self) -> bool:
        state = self.state
        start = _word_start_before(state.query, state.cursor)
        return self._replace(state.query[:start] + state.query[state.cursor :], start)

    def delete_to_start(self) -> bool:
        state = self.state
        return self._replace(state.query[state.cursor :], 0)

    def delete_to_end(self) -> bool:
        state = self.state
        return self._replace(state.query[: state.cursor], state.cursor)

    def move_to(self, position: int) -> bool:
        """Place the cursor at ``position``; negative values count from the end."""
        length = len(self.state.query)
        if position < 0:
            position = length + 1 + position
        return self._replace(self.state.query, position)

    def forward_char(self) -> bool:
        return self._replace(self.state.query, self.state.cursor + 1)

    def backward_char(self) -> bool:
        return self._replace(self.state.query, self.state.cursor - 1)

    def forward_word(self) -> bool:
        return self._replace(self.state.query, _word_end_after(self.state.query, self.state.cursor))

    def backward_word(self) -> bool:
        return self._replace(self.state.query, _word_start_before(self.state.query, self.state.cursor))

    def set_text(self, text: str) -> bool:
        return self._replace(text, len(text))

    def clear(self) -> bool:
        return self._replace("", 0)

    def history_up(self) -> bool:
        state = self.state
        if not self.history:
            return False
        if state.history_index is None:
            state.history_draft = state.query
            index = len(self.history) - 1
        else:
            index = max(0, state.history_index - 1)
        state.history_index = index
        entry = self.history[index]
        return self._replace(entry, len(entry), from_history=True)

    def history_down(self) -> bool:
        state = self.state
        if state.history_index is None:
            return False
        index = state.history_index + 1
        if index >= len(self.history):
            state.history_index = None
            text = state.history_draft
        else:
            state.history_index = index
            text = self.history[index]
        return self._replace(text, len(text), from_history=True)


__all__ = ["QueryController"]
