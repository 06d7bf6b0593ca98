"""Public package surface for lazypicker.

Exports ``main`` for programmatic CLI invocation and ``pick`` for library
use. Most implementation lives in submodules under ``lazypicker``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import PickerConfig


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


def pick(lines: Iterable[str], config: PickerConfig | None = None) -> list[str]:
    """Run the picker over ``lines`` and return the accepted, formatted records.

    Raises :class:`~lazypicker.errors.PickAborted` when the user cancels and
    :class:`~lazypicker.errors.LazyPickerError` subclasses on failure.
    """
    from .config import build_config
    from .errors import Abort, PickAborted
    from .runtime.app import run_picker

    result = run_picker(config if config is not None else build_config(), lines=lines)
    if isinstance(result.termination, Abort):
        raise PickAborted(result.termination.code)
    return result.output


__all__ = ["main", "pick"]
