"""Error kinds and terminal outcomes for the picker.

Fatal errors (config, terminal) stop the picker before or during the loop.
Recoverable errors (pattern, subprocess) are rendered in place and never
interrupt interaction. ``Accept``/``Abort`` are outcomes, not errors.
"""

from __future__ import annotations

from dataclasses import dataclass


class LazyPickerError(Exception):
    """Base class for every error the picker reports."""


class ConfigError(LazyPickerError):
    """Invalid binding, template, layout, or option value."""


class MatchEngineError(LazyPickerError):
    """Ranking engine rejected a request; previous results stay valid."""


class PatternError(MatchEngineError):
    """Malformed query pattern."""


class SubprocessError(LazyPickerError):
    """Preview, execute, or reload command failed to spawn or exited abnormally."""

    def __init__(self, command: str, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class TerminalError(LazyPickerError):
    """Backend I/O failure while driving the terminal."""


@dataclass(frozen=True)
class Accept:
    """Picker finished with the given record texts (formatted on output)."""

    indices: tuple[int, ...]


@dataclass(frozen=True)
class Abort:
    """User cancelled; ``code`` becomes the process exit status."""

    code: int = 1


Termination = Accept | Abort


class PickAborted(Exception):
    """Raised by :func:`lazypicker.pick` when the user cancels."""

    def __init__(self, code: int) -> None:
        super().__init__(f"picker aborted with code {code}")
        self.code = code


__all__ = [
    "Abort",
    "Accept",
    "ConfigError",
    "LazyPickerError",
    "MatchEngineError",
    "PatternError",
    "PickAborted",
    "SubprocessError",
    "TerminalError",
    "Termination",
]
