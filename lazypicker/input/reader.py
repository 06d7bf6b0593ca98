"""Low-level terminal input decoding.

Reads raw bytes from the tty and translates them into :class:`InputEvent`
values carrying a normalized :class:`Trigger`. Handles ESC-sequence timing,
xterm modifier parameters, UTF-8 multi-byte characters, and SGR mouse
reports. Sequences the decoder does not know map to the ``unknown`` key,
which no binding can name.
"""

from __future__ import annotations

import os
import select
from dataclasses import dataclass

from ..dispatch.triggers import KIND_KEY, KIND_MOUSE, UNKNOWN_KEY, Trigger
from ..errors import TerminalError

ESC_SEQUENCE_TIMEOUT_MS = 25


@dataclass(frozen=True)
class InputEvent:
    trigger: Trigger
    col: int = 0
    row: int = 0


_CONTROL_NAMES = {
    b"\r": "enter",
    b"\n": "enter",
    b"\t": "tab",
    b"\x7f": "backspace",
    b"\x08": "h",  # ctrl-h
    b"\x00": " ",  # ctrl-space
}

_CSI_FINAL_KEYS = {
    b"A": "up",
    b"B": "down",
    b"C": "right",
    b"D": "left",
    b"H": "home",
    b"F": "end",
    b"Z": "backtab",
    b"P": "f1",
    b"Q": "f2",
    b"R": "f3",
    b"S": "f4",
}

_TILDE_KEYS = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageup",
    6: "pagedown",
    7: "home",
    8: "end",
    11: "f1",
    12: "f2",
    13: "f3",
    14: "f4",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

_SS3_KEYS = {b"A": "up", b"B": "down", b"C": "right", b"D": "left", b"H": "home", b"F": "end", b"P": "f1", b"Q": "f2", b"R": "f3", b"S": "f4"}

_UNKNOWN = Trigger(KIND_KEY, UNKNOWN_KEY)


def _modifiers_from_param(param: int) -> tuple[str, ...]:
    """Decode xterm's ``1 + bitmask`` modifier parameter."""
    mask = max(0, param - 1)
    mods = []
    if mask & 4:
        mods.append("ctrl")
    if mask & 2 or mask & 8:
        mods.append("alt")
    if mask & 1:
        mods.append("shift")
    return tuple(mods)


class KeyReader:
    """Decoder bound to one tty file descriptor.

    Bytes that were read ahead while decoding an escape sequence are kept in
    a pending buffer and consumed before touching the descriptor again.
    Read failures and end of input raise :class:`TerminalError`.
    """

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._pending: list[bytes] = []

    def _ready(self, timeout_s: float) -> bool:
        try:
            ready, _, _ = select.select([self.fd], [], [], timeout_s)
        except (OSError, ValueError) as exc:
            raise TerminalError(f"terminal input failed: {exc}") from exc
        return bool(ready)

    def _read_byte(self, timeout_ms: int | None) -> bytes | None:
        if self._pending:
            return self._pending.pop(0)
        if timeout_ms is not None and not self._ready(max(0.0, timeout_ms / 1000.0)):
            return None
        try:
            ch = os.read(self.fd, 1)
        except OSError as exc:
            raise TerminalError(f"terminal read failed: {exc}") from exc
        if not ch:
            raise TerminalError("terminal input closed")
        return ch

    def has_pending(self) -> bool:
        if self._pending:
            return True
        return self._ready(0)

    def read_event(self, timeout_ms: int | None = None) -> InputEvent | None:
        """Read one event; return ``None`` on timeout."""
        ch = self._read_byte(timeout_ms)
        if ch is None:
            return None
        if ch == b"\x1b":
            return self._read_escape()
        return InputEvent(self._event_from_byte(ch))

    def _decode_utf8(self, first: bytes) -> str:
        lead = first[0]
        if lead < 0x80:
            return first.decode("ascii")
        extra = 1 if lead >> 5 == 0b110 else 2 if lead >> 4 == 0b1110 else 3 if lead >> 3 == 0b11110 else 0
        data = first
        for _ in range(extra):
            nxt = self._read_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if nxt is None:
                break
            data += nxt
        return data.decode("utf-8", errors="replace")

    def _read_escape(self) -> InputEvent:
        seq = self._read_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return InputEvent(Trigger(KIND_KEY, "esc"))
        if seq == b"\x1b":
            self._pending.append(seq)
            return InputEvent(Trigger(KIND_KEY, "esc"))
        if seq == b"[":
            return self._read_csi()
        if seq == b"O":
            final = self._read_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if final is None:
                return InputEvent(Trigger(KIND_KEY, "O", ("alt",)))
            return InputEvent(Trigger(KIND_KEY, _SS3_KEYS[final]) if final in _SS3_KEYS else _UNKNOWN)
        # ESC + key is the alt-modified key.
        inner = self._event_from_byte(seq)
        mods = tuple(m for m in ("ctrl", "alt", "shift") if m == "alt" or m in inner.modifiers)
        return InputEvent(Trigger(KIND_KEY, inner.name, mods))

    def _event_from_byte(self, ch: bytes) -> Trigger:
        name = _CONTROL_NAMES.get(ch)
        if name is not None:
            return Trigger(KIND_KEY, name, ("ctrl",) if ch in {b"\x08", b"\x00"} else ())
        if ch[0] < 0x20:
            return Trigger(KIND_KEY, chr(ch[0] + 0x60), ("ctrl",))
        return Trigger(KIND_KEY, self._decode_utf8(ch))

    def _read_csi(self) -> InputEvent:
        body = b""
        while True:
            part = self._read_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if part is None:
                if not body:
                    return InputEvent(Trigger(KIND_KEY, "[", ("alt",)))
                return InputEvent(_UNKNOWN)
            if 0x40 <= part[0] <= 0x7E:
                final = part
                break
            body += part
            if len(body) > 64:
                return InputEvent(_UNKNOWN)

        if body.startswith(b"<") and final in {b"M", b"m"}:
            return self._mouse_event(body[1:], final)

        params = [int(p) if p.isdigit() else 0 for p in body.decode("ascii", errors="replace").split(";")] if body else []
        mods = _modifiers_from_param(params[1]) if len(params) >= 2 else ()
        if final == b"~":
            name = _TILDE_KEYS.get(params[0]) if params else None
        else:
            name = _CSI_FINAL_KEYS.get(final)
        if name is None:
            return InputEvent(_UNKNOWN)
        return InputEvent(Trigger(KIND_KEY, name, mods))

    def _mouse_event(self, payload: bytes, final: bytes) -> InputEvent:
        # SGR mouse: ESC [ < btn ; col ; row (M press / m release)
        try:
            btn_s, col_s, row_s = payload.decode("ascii").split(";")
            btn, col, row = int(btn_s), int(col_s), int(row_s)
        except ValueError:
            return InputEvent(_UNKNOWN)
        mods = tuple(
            name for bit, name in ((16, "ctrl"), (8, "alt"), (4, "shift")) if btn & bit
        )
        button = btn & 0b11
        if btn & 0b0100_0000:
            wheel = ("scrollup", "scrolldown", "scrollleft", "scrollright")[button]
            return InputEvent(Trigger(KIND_MOUSE, wheel, mods), col, row)
        if final == b"m" or btn & 0b0010_0000:
            # Releases and drags are reported but unbound by default.
            return InputEvent(Trigger(KIND_MOUSE, "release", mods), col, row)
        names = ("leftclick", "middleclick", "rightclick")
        if button > 2:
            return InputEvent(Trigger(KIND_MOUSE, "release", mods), col, row)
        return InputEvent(Trigger(KIND_MOUSE, names[button], mods), col, row)


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "InputEvent", "KeyReader"]
