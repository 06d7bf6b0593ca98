"""Public runtime orchestration entry points.

This package groups the interactive picker bootstrap (``run_picker``) and
the lower-level event loop contracts used by tests and composition code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .app import PickerResult
    from .loop import RuntimeLoopCallbacks, RuntimeLoopTiming


def run_picker(*args, **kwargs):
    """Lazily import the picker entrypoint to avoid heavy bootstrap on import."""
    from .app import run_picker as _run_picker

    return _run_picker(*args, **kwargs)


def run_main_loop(*args, **kwargs):
    """Lazily import loop runner to avoid package-import cycles."""
    from .loop import run_main_loop as _run_main_loop

    return _run_main_loop(*args, **kwargs)


def __getattr__(name: str):
    if name in {"RuntimeLoopCallbacks", "RuntimeLoopTiming"}:
        from . import loop as _loop

        return getattr(_loop, name)
    if name == "PickerResult":
        from . import app as _app

        return _app.PickerResult
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "PickerResult",
    "RuntimeLoopCallbacks",
    "RuntimeLoopTiming",
    "run_main_loop",
    "run_picker",
]
