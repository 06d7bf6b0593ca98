"""Terminal control helpers for the picker session.

Owns raw-mode lifecycle, alternate-screen switching, and mouse reporting.
Foreground commands borrow the terminal through :meth:`released`, which
fully restores cooked mode and the main screen for their duration.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

from ..errors import TerminalError

ENTER_TUI = b"\x1b[?1049h\x1b[?25l"
LEAVE_TUI = b"\x1b[?25h\x1b[?1049l"
MOUSE_ON = b"\x1b[?1000h\x1b[?1002h\x1b[?1006h"
MOUSE_OFF = b"\x1b[?1000l\x1b[?1002l\x1b[?1006l"


class TerminalController:
    """Manage terminal mode transitions on one tty."""

    def __init__(self, stdin_fd: int, stdout_fd: int, mouse: bool = True) -> None:
        """Capture tty state and bind input/output file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.mouse = mouse
        try:
            self._saved_tty_state = termios.tcgetattr(stdin_fd)
        except termios.error as exc:
            raise TerminalError(f"cannot read terminal attributes: {exc}") from exc
        self._mouse_reporting_enabled = False
        self._tui_active = False

    @classmethod
    def open_tty(cls, mouse: bool = True) -> TerminalController:
        """Open ``/dev/tty`` directly so stdin/stdout can stay redirected."""
        try:
            fd = os.open("/dev/tty", os.O_RDWR | os.O_NOCTTY)
        except OSError as exc:
            raise TerminalError(f"cannot open /dev/tty: {exc}") from exc
        return cls(fd, fd, mouse=mouse)

    @property
    def active(self) -> bool:
        return self._tui_active

    def write(self, data: bytes) -> None:
        try:
            os.write(self.stdout_fd, data)
        except OSError as exc:
            raise TerminalError(f"terminal write failed: {exc}") from exc

    def size(self) -> tuple[int, int]:
        """Return ``(columns, lines)`` of the controlling terminal."""
        try:
            size = os.get_terminal_size(self.stdout_fd)
        except OSError:
            size = shutil.get_terminal_size((80, 24))
        return size.columns, size.lines

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode, with mouse reporting if enabled."""
        try:
            tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        except termios.error as exc:
            raise TerminalError(f"cannot enter raw mode: {exc}") from exc
        self.write(ENTER_TUI + (MOUSE_ON if self.mouse else b""))
        self._mouse_reporting_enabled = self.mouse
        self._tui_active = True

    def disable_tui_mode(self) -> None:
        """Restore the saved tty state and the main screen buffer."""
        if not self._tui_active:
            return
        self._tui_active = False
        self.write((MOUSE_OFF if self._mouse_reporting_enabled else b"") + LEAVE_TUI)
        self._mouse_reporting_enabled = False
        try:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
        except termios.error as exc:
            raise TerminalError(f"cannot restore terminal mode: {exc}") from exc

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()

    @contextlib.contextmanager
    def released(self):
        """Hand the terminal to a foreground command, then take it back."""
        was_active = self._tui_active
        if was_active:
            self.disable_tui_mode()
        try:
            yield
        finally:
            if was_active:
                self.enable_tui_mode()

    def close(self) -> None:
        if self.stdin_fd > 2:
            try:
                os.close(self.stdin_fd)
            except OSError:
                pass


__all__ = ["TerminalController"]
