"""Closed set of picker actions and their textual form.

Actions are written as ``Name`` or ``Name(payload)`` in bindings. Each kind
declares its category and payload shape; parsing validates both so a bad
binding is reported before the picker starts.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ..errors import ConfigError

MAX_ACTIONS = 6


class ActionCategory(enum.Enum):
    SELECTION = "selection"
    NAVIGATION = "navigation"
    PREVIEW = "preview"
    EDIT = "edit"
    DISPLAY = "display"
    SYSTEM = "system"


class Payload(enum.Enum):
    """How an action's parenthesized argument is parsed."""

    NONE = "none"
    INT = "int"  # required integer
    COUNT = "count"  # integer, default 1
    OPT_INT = "opt_int"
    STR = "str"  # required non-empty string
    OPT_STR = "opt_str"


class ActionKind(enum.Enum):
    SELECT = "Select"
    DESELECT = "Deselect"
    TOGGLE = "Toggle"
    CYCLE_ALL = "CycleAll"
    CLEAR_ALL = "ClearAll"
    ACCEPT = "Accept"
    QUIT = "Quit"

    UP = "Up"
    DOWN = "Down"
    POS = "Pos"
    FORWARD_CHAR = "ForwardChar"
    BACKWARD_CHAR = "BackwardChar"
    FORWARD_WORD = "ForwardWord"
    BACKWARD_WORD = "BackwardWord"
    INPUT_POS = "InputPos"

    CYCLE_PREVIEW = "CyclePreview"
    PREVIEW = "Preview"
    HELP = "Help"
    SWITCH_PREVIEW = "SwitchPreview"
    SET_PREVIEW = "SetPreview"
    TOGGLE_WRAP_PREVIEW = "ToggleWrapPreview"
    PREVIEW_UP = "PreviewUp"
    PREVIEW_DOWN = "PreviewDown"
    PREVIEW_HALF_PAGE_UP = "PreviewHalfPageUp"
    PREVIEW_HALF_PAGE_DOWN = "PreviewHalfPageDown"

    INPUT = "Input"
    SET_INPUT = "SetInput"
    CANCEL = "Cancel"
    DELETE_CHAR = "DeleteChar"
    DELETE_WORD = "DeleteWord"
    DELETE_LINE_START = "DeleteLineStart"
    DELETE_LINE_END = "DeleteLineEnd"
    HISTORY_UP = "HistoryUp"
    HISTORY_DOWN = "HistoryDown"
    TOGGLE_WRAP = "ToggleWrap"

    SET_HEADER = "SetHeader"
    SET_FOOTER = "SetFooter"
    SET_PROMPT = "SetPrompt"
    COLUMN = "Column"
    CYCLE_COLUMN = "CycleColumn"
    REDRAW = "Redraw"
    OVERLAY = "Overlay"

    EXECUTE = "Execute"
    BECOME = "Become"
    RELOAD = "Reload"
    PRINT = "Print"


_K = ActionKind
_C = ActionCategory
_P = Payload

ACTION_SPECS: dict[ActionKind, tuple[ActionCategory, Payload]] = {
    _K.SELECT: (_C.SELECTION, _P.NONE),
    _K.DESELECT: (_C.SELECTION, _P.NONE),
    _K.TOGGLE: (_C.SELECTION, _P.NONE),
    _K.CYCLE_ALL: (_C.SELECTION, _P.NONE),
    _K.CLEAR_ALL: (_C.SELECTION, _P.NONE),
    _K.ACCEPT: (_C.SELECTION, _P.NONE),
    _K.QUIT: (_C.SELECTION, _P.COUNT),
    _K.UP: (_C.NAVIGATION, _P.COUNT),
    _K.DOWN: (_C.NAVIGATION, _P.COUNT),
    _K.POS: (_C.NAVIGATION, _P.INT),
    _K.FORWARD_CHAR: (_C.NAVIGATION, _P.NONE),
    _K.BACKWARD_CHAR: (_C.NAVIGATION, _P.NONE),
    _K.FORWARD_WORD: (_C.NAVIGATION, _P.NONE),
    _K.BACKWARD_WORD: (_C.NAVIGATION, _P.NONE),
    _K.INPUT_POS: (_C.NAVIGATION, _P.INT),
    _K.CYCLE_PREVIEW: (_C.PREVIEW, _P.NONE),
    _K.PREVIEW: (_C.PREVIEW, _P.STR),
    _K.HELP: (_C.PREVIEW, _P.OPT_STR),
    _K.SWITCH_PREVIEW: (_C.PREVIEW, _P.OPT_INT),
    _K.SET_PREVIEW: (_C.PREVIEW, _P.OPT_INT),
    _K.TOGGLE_WRAP_PREVIEW: (_C.PREVIEW, _P.NONE),
    _K.PREVIEW_UP: (_C.PREVIEW, _P.COUNT),
    _K.PREVIEW_DOWN: (_C.PREVIEW, _P.COUNT),
    _K.PREVIEW_HALF_PAGE_UP: (_C.PREVIEW, _P.NONE),
    _K.PREVIEW_HALF_PAGE_DOWN: (_C.PREVIEW, _P.NONE),
    _K.INPUT: (_C.EDIT, _P.OPT_STR),
    _K.SET_INPUT: (_C.EDIT, _P.OPT_STR),
    _K.CANCEL: (_C.EDIT, _P.NONE),
    _K.DELETE_CHAR: (_C.EDIT, _P.NONE),
    _K.DELETE_WORD: (_C.EDIT, _P.NONE),
    _K.DELETE_LINE_START: (_C.EDIT, _P.NONE),
    _K.DELETE_LINE_END: (_C.EDIT, _P.NONE),
    _K.HISTORY_UP: (_C.EDIT, _P.NONE),
    _K.HISTORY_DOWN: (_C.EDIT, _P.NONE),
    _K.TOGGLE_WRAP: (_C.EDIT, _P.NONE),
    _K.SET_HEADER: (_C.DISPLAY, _P.OPT_STR),
    _K.SET_FOOTER: (_C.DISPLAY, _P.OPT_STR),
    _K.SET_PROMPT: (_C.DISPLAY, _P.OPT_STR),
    _K.COLUMN: (_C.DISPLAY, _P.INT),
    _K.CYCLE_COLUMN: (_C.DISPLAY, _P.NONE),
    _K.REDRAW: (_C.DISPLAY, _P.NONE),
    _K.OVERLAY: (_C.DISPLAY, _P.INT),
    _K.EXECUTE: (_C.SYSTEM, _P.STR),
    _K.BECOME: (_C.SYSTEM, _P.STR),
    _K.RELOAD: (_C.SYSTEM, _P.STR),
    _K.PRINT: (_C.SYSTEM, _P.OPT_STR),
}

_NAME_LOOKUP: dict[str, ActionKind] = {kind.value.lower(): kind for kind in ActionKind}


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    payload: int | str | None = None

    @property
    def category(self) -> ActionCategory:
        return ACTION_SPECS[self.kind][0]

    def __str__(self) -> str:
        if self.payload is None:
            return self.kind.value
        return f"{self.kind.value}({self.payload})"


def _normalize_name(name: str) -> str:
    return name.strip().replace("-", "").replace("_", "").lower()


def parse_action(text: str) -> Action:
    """Parse ``Name`` / ``Name(payload)``; raise :class:`ConfigError` on bad input.

    Names are matched case-insensitively and may use kebab or snake case.
    """
    raw = text.strip()
    name, payload_text = raw, None
    open_idx = raw.find("(")
    if open_idx >= 0 and raw.endswith(")"):
        name = raw[:open_idx]
        payload_text = raw[open_idx + 1 : -1]

    kind = _NAME_LOOKUP.get(_normalize_name(name))
    if kind is None:
        raise ConfigError(f"unknown action: {raw!r}")
    shape = ACTION_SPECS[kind][1]

    if shape is Payload.NONE:
        if payload_text:
            raise ConfigError(f"action {kind.value} takes no argument: {raw!r}")
        return Action(kind)
    if shape in {Payload.STR, Payload.OPT_STR}:
        if not payload_text:
            if shape is Payload.STR:
                raise ConfigError(f"action {kind.value} needs an argument: {raw!r}")
            return Action(kind)
        return Action(kind, payload_text)

    if not payload_text:
        if shape is Payload.INT:
            raise ConfigError(f"action {kind.value} needs an integer argument: {raw!r}")
        return Action(kind, 1 if shape is Payload.COUNT else None)
    try:
        value = int(payload_text.strip())
    except ValueError as exc:
        raise ConfigError(f"action {kind.value} expects an integer, got {payload_text!r}") from exc
    return Action(kind, value)


def parse_actions(spec: str | list[str]) -> tuple[Action, ...]:
    """Parse a binding value: a list of action strings or one ``+``-joined string."""
    if isinstance(spec, str):
        parts = _split_action_chain(spec)
    else:
        parts = [str(item) for item in spec]
    actions = tuple(parse_action(part) for part in parts if part.strip())
    if not actions:
        raise ConfigError("binding has no actions")
    if len(actions) > MAX_ACTIONS:
        raise ConfigError(f"binding has {len(actions)} actions; at most {MAX_ACTIONS} are allowed")
    return actions


def _split_action_chain(spec: str) -> list[str]:
    # ``+`` inside a payload, e.g. ``Execute(a+b)``, is not a separator.
    parts: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in spec:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch == "+" and depth == 0:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append("".join(buf))
    return parts


__all__ = [
    "ACTION_SPECS",
    "Action",
    "ActionCategory",
    "ActionKind",
    "MAX_ACTIONS",
    "Payload",
    "parse_action",
    "parse_actions",
]
