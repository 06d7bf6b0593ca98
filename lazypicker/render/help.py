"""Binding listing shown by the ``Help`` action.

The listing is INI-shaped (one section per trigger kind, ``trigger = actions``
entries) so Pygments' INI lexer can colour it for the preview pane.
"""

from __future__ import annotations

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import IniLexer

from ..dispatch.bindings import BindingTable
from ..dispatch.triggers import KIND_EVENT, KIND_KEY, KIND_MOUSE

_SECTIONS: tuple[tuple[str, str], ...] = (
    (KIND_KEY, "keys"),
    (KIND_MOUSE, "mouse"),
    (KIND_EVENT, "events"),
)


def help_text(bindings: BindingTable) -> str:
    """Return the binding table as INI text, sorted within each section."""
    grouped: dict[str, list[tuple[str, str]]] = {kind: [] for kind, _ in _SECTIONS}
    for trigger, actions in bindings.items():
        rendered = " + ".join(str(action) for action in actions) or "(unbound)"
        grouped.setdefault(trigger.kind, []).append((str(trigger), rendered))
    blocks: list[str] = []
    for kind, title in _SECTIONS:
        entries = sorted(grouped.get(kind, ()))
        if not entries:
            continue
        width = max(len(name) for name, _ in entries)
        lines = [f"[{title}]"]
        lines.extend(f"{name.ljust(width)} = {rendered}" for name, rendered in entries)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


def help_lines(bindings: BindingTable, color: bool = True) -> list[str]:
    """Return the help listing split into display lines, optionally coloured."""
    text = help_text(bindings)
    if color:
        text = highlight(text, IniLexer(), TerminalFormatter())
    return text.rstrip("\n").splitlines()


__all__ = ["help_lines", "help_text"]
