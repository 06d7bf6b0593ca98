"""Binding table: normalized trigger to ordered action sequence."""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from ..errors import ConfigError
from .actions import MAX_ACTIONS, Action, ActionKind, parse_actions
from .triggers import GENERIC_PRINTABLE, KIND_KEY, Trigger, key, parse_trigger

_GENERIC_PRINTABLE_TRIGGER = key(GENERIC_PRINTABLE)


class BindingTable:
    """Small dispatch table keyed by :class:`Trigger`.

    Resolution is pure: the same trigger always yields the same actions for
    a given table. Exact bindings win over the generic ``printable`` key.
    """

    def __init__(self) -> None:
        self._bindings: dict[Trigger, tuple[Action, ...]] = {}

    def bind(self, trigger: Trigger, actions: tuple[Action, ...] | list[Action]) -> BindingTable:
        """Register ``actions`` for ``trigger``, replacing any previous binding."""
        actions = tuple(actions)
        if len(actions) > MAX_ACTIONS:
            raise ConfigError(f"{trigger}: at most {MAX_ACTIONS} actions per binding")
        if actions:
            self._bindings[trigger] = actions
        else:
            self._bindings.pop(trigger, None)
        return self

    def update(self, other: BindingTable) -> BindingTable:
        for trigger, actions in other.items():
            self.bind(trigger, actions)
        return self

    def items(self) -> Iterator[tuple[Trigger, tuple[Action, ...]]]:
        return iter(self._bindings.items())

    def __contains__(self, trigger: Trigger) -> bool:
        return trigger in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def get(self, trigger: Trigger) -> tuple[Action, ...]:
        return self._bindings.get(trigger, ())

    def resolve(self, trigger: Trigger) -> tuple[Action, ...]:
        """Return the action sequence for ``trigger`` (empty when unbound).

        An ``Input`` action without a payload is filled with the typed
        character so generic bindings insert what was pressed.
        """
        actions = self._bindings.get(trigger)
        if actions is None and trigger.kind == KIND_KEY and trigger.is_printable_char:
            actions = self._bindings.get(_GENERIC_PRINTABLE_TRIGGER)
        if not actions:
            return ()
        if trigger.kind != KIND_KEY or len(trigger.name) != 1:
            return actions
        return tuple(
            Action(ActionKind.INPUT, trigger.name)
            if action.kind is ActionKind.INPUT and action.payload is None
            else action
            for action in actions
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> BindingTable:
        """Build a table from ``{"ctrl-c": "Quit(1)", "enter": ["Accept"]}``-style data."""
        table = cls()
        for raw_trigger, raw_actions in mapping.items():
            trigger = parse_trigger(str(raw_trigger))
            if isinstance(raw_actions, str):
                actions = parse_actions(raw_actions)
            elif isinstance(raw_actions, (list, tuple)):
                actions = parse_actions([str(item) for item in raw_actions])
            else:
                raise ConfigError(f"{raw_trigger}: binding must be a string or a list of strings")
            table.bind(trigger, actions)
        return table


DEFAULT_BINDINGS: dict[str, str | list[str]] = {
    "ctrl-c": "Quit(1)",
    "esc": "Quit(1)",
    "enter": "Accept",
    "up": "Up(1)",
    "down": "Down(1)",
    "ctrl-p": "Up(1)",
    "ctrl-n": "Down(1)",
    "pageup": "Up(10)",
    "pagedown": "Down(10)",
    "home": "Pos(0)",
    "end": "Pos(-1)",
    "tab": ["Toggle", "Down(1)"],
    "backtab": ["Toggle", "Up(1)"],
    "right": "ForwardChar",
    "left": "BackwardChar",
    "ctrl-right": "ForwardWord",
    "ctrl-left": "BackwardWord",
    "alt-f": "ForwardWord",
    "alt-b": "BackwardWord",
    "ctrl-a": "InputPos(0)",
    "ctrl-e": "InputPos(-1)",
    "backspace": "DeleteChar",
    "ctrl-h": "DeleteWord",
    "ctrl-w": "DeleteWord",
    "ctrl-u": "Cancel",
    "ctrl-k": "DeleteLineEnd",
    "alt-up": "HistoryUp",
    "alt-down": "HistoryDown",
    "alt-h": "Help",
    "alt-p": "CyclePreview",
    "alt-w": "ToggleWrapPreview",
    "shift-up": "PreviewUp(1)",
    "shift-down": "PreviewDown(1)",
    "shift-pageup": "PreviewHalfPageUp",
    "shift-pagedown": "PreviewHalfPageDown",
    "ctrl-l": "Redraw",
    "scrollup": "Up(1)",
    "scrolldown": "Down(1)",
    "shift+scrollup": "PreviewUp(3)",
    "shift+scrolldown": "PreviewDown(3)",
    "printable": "Input",
}


def default_bindings() -> BindingTable:
    return BindingTable.from_mapping(DEFAULT_BINDINGS)


__all__ = ["BindingTable", "DEFAULT_BINDINGS", "default_bindings"]
