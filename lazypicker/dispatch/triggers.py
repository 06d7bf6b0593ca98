"""Normalized triggers: key chords, mouse buttons, and synthetic events.

String forms:

- keys: ``ctrl-alt-shift-name`` (``enter``, ``up``, ``f5``, ``a``, ...)
- mouse: ``ctrl+alt+shift+button`` (``leftclick``, ``scrollup``, ...)
- events: bare event names (``start``, ``query-change``, ...)

``printable`` is the generic key trigger that matches every unmodified
printable character; it resolves after any exact binding.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigError

KIND_KEY = "key"
KIND_MOUSE = "mouse"
KIND_EVENT = "event"

MODIFIER_ORDER: tuple[str, ...] = ("ctrl", "alt", "shift")

KEY_NAMES = frozenset(
    {
        "enter",
        "esc",
        "tab",
        "backtab",
        "backspace",
        "delete",
        "insert",
        "space",
        "up",
        "down",
        "left",
        "right",
        "home",
        "end",
        "pageup",
        "pagedown",
        *(f"f{n}" for n in range(1, 13)),
    }
)
KEY_ALIASES = {
    "return": "enter",
    "escape": "esc",
    "bs": "backspace",
    "bspace": "backspace",
    "del": "delete",
    "ins": "insert",
    "pgup": "pageup",
    "pgdn": "pagedown",
    "btab": "backtab",
}
GENERIC_PRINTABLE = "printable"
# Reported for escape sequences the reader cannot decode; never bindable.
UNKNOWN_KEY = "unknown"

MOUSE_BUTTONS = frozenset(
    {"leftclick", "middleclick", "rightclick", "scrollup", "scrolldown", "scrollleft", "scrollright"}
)

EVENT_START = "start"
EVENT_QUERY_CHANGE = "query-change"
EVENT_CURSOR_CHANGE = "cursor-change"
EVENT_PREVIEW_CHANGE = "preview-change"
EVENT_PREVIEW_SET = "preview-set"
EVENT_RESIZE = "resize"
EVENT_SYNCED = "synced"
EVENT_RESYNCED = "resynced"
EVENT_OVERLAY_CHANGE = "overlay-change"
EVENT_NAMES = frozenset(
    {
        EVENT_START,
        EVENT_QUERY_CHANGE,
        EVENT_CURSOR_CHANGE,
        EVENT_PREVIEW_CHANGE,
        EVENT_PREVIEW_SET,
        EVENT_RESIZE,
        EVENT_SYNCED,
        EVENT_RESYNCED,
        EVENT_OVERLAY_CHANGE,
    }
)


@dataclass(frozen=True)
class Trigger:
    kind: str
    name: str
    modifiers: tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.kind == KIND_EVENT:
            return self.name
        joiner = "+" if self.kind == KIND_MOUSE else "-"
        return joiner.join((*self.modifiers, self.name))

    @property
    def is_printable_char(self) -> bool:
        """Whether this key could be typed into the query as-is."""
        if self.kind != KIND_KEY or len(self.name) != 1:
            return False
        if "ctrl" in self.modifiers or "alt" in self.modifiers:
            return False
        return self.name.isprintable()


def _canonical_modifiers(mods: list[str], source: str) -> tuple[str, ...]:
    unknown = [mod for mod in mods if mod not in MODIFIER_ORDER]
    if unknown:
        raise ConfigError(f"unknown modifier {unknown[0]!r} in trigger {source!r}")
    return tuple(mod for mod in MODIFIER_ORDER if mod in mods)


def key(name: str, *modifiers: str) -> Trigger:
    """Build a key trigger with canonical modifier order."""
    return Trigger(KIND_KEY, name, tuple(mod for mod in MODIFIER_ORDER if mod in modifiers))


def mouse(button: str, *modifiers: str) -> Trigger:
    return Trigger(KIND_MOUSE, button, tuple(mod for mod in MODIFIER_ORDER if mod in modifiers))


def event(name: str) -> Trigger:
    return Trigger(KIND_EVENT, name)


def _parse_mouse(text: str) -> Trigger:
    parts = [part.strip().lower() for part in text.split("+")]
    button = parts[-1]
    if button not in MOUSE_BUTTONS:
        raise ConfigError(f"unknown mouse button in trigger {text!r}")
    return Trigger(KIND_MOUSE, button, _canonical_modifiers(parts[:-1], text))


def _parse_key(text: str) -> Trigger:
    if len(text) == 1:
        return Trigger(KIND_KEY, text)
    parts = text.split("-")
    if parts[-1] == "" and len(parts) >= 2:
        # Trailing ``-`` names the minus key itself, as in ``ctrl--``.
        parts = parts[:-2] + ["-"]
    *mods, base = parts
    mods = [mod.strip().lower() for mod in mods]
    if len(base) != 1:
        base = base.strip().lower()
        base = KEY_ALIASES.get(base, base)
        if base not in KEY_NAMES and base != GENERIC_PRINTABLE:
            raise ConfigError(f"unknown key name in trigger {text!r}")
    elif "ctrl" in mods:
        base = base.lower()
    elif "shift" in mods and base.isalpha():
        # Terminals report shifted letters as the uppercase character.
        base = base.upper()
        mods = [mod for mod in mods if mod != "shift"]
    if base == "space":
        base = " "
    return Trigger(KIND_KEY, base, _canonical_modifiers(mods, text))


def parse_trigger(text: str) -> Trigger:
    """Parse a binding key into a :class:`Trigger`; raise :class:`ConfigError`."""
    if not text:
        raise ConfigError("empty trigger")
    stripped = text.strip() or text
    lowered = stripped.lower()
    if lowered in EVENT_NAMES:
        return Trigger(KIND_EVENT, lowered)
    if lowered in MOUSE_BUTTONS or ("+" in stripped and len(stripped) > 1):
        return _parse_mouse(stripped)
    return _parse_key(stripped)


__all__ = [
    "EVENT_NAMES",
    "GENERIC_PRINTABLE",
    "KIND_EVENT",
    "KIND_KEY",
    "KIND_MOUSE",
    "MOUSE_BUTTONS",
    "UNKNOWN_KEY",
    "Trigger",
    "event",
    "key",
    "mouse",
    "parse_trigger",
]
