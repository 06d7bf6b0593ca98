"""Preview pane geometry selection."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import ConfigError

SIDES = ("right", "left", "top", "bottom")


@dataclass(frozen=True)
class Layout:
    """Preview placement: ``percentage`` of the axis, bounded by ``min``/``max``.

    ``max == 0`` leaves the upper bound open.
    """

    side: str = "right"
    percentage: int = 50
    min: int = 20
    max: int = 0

    def validate(self) -> Layout:
        if self.side not in SIDES:
            raise ConfigError(f"layout side must be one of {', '.join(SIDES)}, got {self.side!r}")
        if not 0 < self.percentage <= 100:
            raise ConfigError(f"layout percentage must be in (0, 100], got {self.percentage}")
        if self.min < 0 or self.max < 0:
            raise ConfigError("layout min/max must be non-negative")
        if self.max and self.max < self.min:
            raise ConfigError(f"layout max {self.max} is below min {self.min}")
        return self

    @property
    def horizontal(self) -> bool:
        return self.side in {"left", "right"}

    def size_for(self, total: int) -> int:
        return math.ceil(total * self.percentage / 100)

    def fits(self, total: int) -> bool:
        size = self.size_for(total)
        if size >= total or size < self.min:
            return False
        return self.max == 0 or size <= self.max


@dataclass(frozen=True)
class PreviewGeometry:
    layout: Layout
    size: int


def parse_layout(text: str) -> Layout:
    """Parse ``side[:percentage[:min[:max]]]``, e.g. ``right:50:20:80``."""
    parts = [part.strip() for part in text.split(":")]
    try:
        numbers = [int(part.rstrip("%")) for part in parts[1:]]
    except ValueError as exc:
        raise ConfigError(f"invalid layout {text!r}: {exc}") from exc
    defaults = Layout(side=parts[0] or "right")
    fields = dict(zip(("percentage", "min", "max"), numbers))
    return Layout(side=defaults.side, **fields).validate()


def choose_layout(layouts: Sequence[Layout], width: int, height: int) -> PreviewGeometry | None:
    """Return the first layout whose size bounds fit the screen, or ``None``."""
    for layout in layouts:
        total = width if layout.horizontal else height
        if layout.fits(total):
            return PreviewGeometry(layout, layout.size_for(total))
    return None


__all__ = ["Layout", "PreviewGeometry", "choose_layout", "parse_layout"]
