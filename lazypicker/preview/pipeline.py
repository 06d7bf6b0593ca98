"""Preview pipeline: sources, generations, and pane state.

Every preview source keeps its own generation counter. Issuing a request
bumps the active source's counter and records it as the latest for that
source; a result is applied only when it answers that latest request for
the target that is still shown. Anything else is stale and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .requests import PreviewRequest, PreviewResult

logger = logging.getLogger(__name__)

ADHOC_SOURCE = -1


@dataclass(frozen=True)
class PreviewSource:
    name: str
    command: str


@dataclass
class PreviewPane:
    visible: bool = False
    wrap: bool = False
    offset: int = 0
    height: int = 0
    lines: tuple[str, ...] = ()
    error: str | None = None
    target: int | None = None
    generation: int = 0
    loading: bool = False
    help_lines: tuple[str, ...] | None = None

    @property
    def content(self) -> tuple[str, ...]:
        return self.help_lines if self.help_lines is not None else self.lines


class PreviewPipeline:
    def __init__(
        self,
        sources: Sequence[PreviewSource],
        scheduler,
        reset_on_change: bool = True,
        scroll_wrap: bool = False,
        initial_wrap: bool = False,
    ) -> None:
        self.sources = list(sources)
        self.scheduler = scheduler
        self.reset_on_change = reset_on_change
        self.scroll_wrap = scroll_wrap
        self.initial_wrap = initial_wrap
        self.active = 0
        self.adhoc_command: str | None = None
        self._generations: dict[int, int] = {}
        self._latest: dict[int, tuple[int, int]] = {}
        self.pane = PreviewPane(visible=bool(self.sources), wrap=initial_wrap)

    @property
    def active_key(self) -> int:
        return ADHOC_SOURCE if self.adhoc_command is not None else self.active

    @property
    def active_template(self) -> str | None:
        if not self.pane.visible:
            return None
        if self.adhoc_command is not None:
            return self.adhoc_command
        if 0 <= self.active < len(self.sources):
            return self.sources[self.active].command
        return None

    @property
    def active_name(self) -> str:
        if self.adhoc_command is not None:
            return "preview"
        if 0 <= self.active < len(self.sources):
            return self.sources[self.active].name
        return ""

    def latest_generation(self, source: int) -> int:
        return self._generations.get(source, 0)

    def _bump(self, source: int) -> int:
        generation = self._generations.get(source, 0) + 1
        self._generations[source] = generation
        return generation

    def retarget(self, target: int | None) -> bool:
        """Point the pane at ``target``; return whether the target changed."""
        if target == self.pane.target:
            return False
        self.pane.target = target
        if self.reset_on_change:
            self.pane.offset = 0
            self.pane.wrap = self.initial_wrap
        if target is None:
            self.invalidate()
            self.pane.lines = ()
            self.pane.error = None
        return True

    def invalidate(self) -> None:
        """Abandon outstanding work for the active source."""
        self._bump(self.active_key)
        self.pane.loading = False
        self.scheduler.cancel()

    def issue(self, target: int, command: str, env: dict[str, str] | None = None) -> PreviewRequest:
        """Stamp and schedule a request for ``target`` with a fresh generation."""
        self.retarget(target)
        source = self.active_key
        generation = self._bump(source)
        self._latest[source] = (generation, target)
        request = PreviewRequest(source=source, generation=generation, target=target, command=command, env=env or {})
        self.pane.loading = True
        self.scheduler.schedule(request)
        logger.debug("preview request source=%d generation=%d target=%d", source, generation, target)
        return request

    def accepts(self, result: PreviewResult) -> bool:
        if result.source != self.active_key:
            return False
        latest = self._latest.get(result.source)
        if latest is None or latest != (result.generation, result.target):
            return False
        return result.generation == self._generations.get(result.source) and result.target == self.pane.target

    def apply(self, result: PreviewResult) -> bool:
        """Apply ``result`` if it answers the latest request; return whether applied."""
        if not self.accepts(result):
            logger.debug(
                "dropping stale preview source=%d generation=%d target=%d",
                result.source,
                result.generation,
                result.target,
            )
            return False
        self.pane.lines = result.lines
        self.pane.error = result.error
        self.pane.generation = result.generation
        self.pane.loading = False
        self._clamp_offset()
        return True

    def cycle(self) -> None:
        if not self.sources:
            return
        self.adhoc_command = None
        self.active = (self.active + 1) % len(self.sources)
        self.pane.visible = True

    def set_source(self, index: int | None) -> None:
        """Show source ``index``; ``None`` hides the pane."""
        if index is None:
            self.pane.visible = False
            self.invalidate()
            return
        if 0 <= index < len(self.sources):
            self.adhoc_command = None
            self.active = index
            self.pane.visible = True

    def switch_source(self, index: int | None) -> None:
        """Like :meth:`set_source`, but re-selecting the shown source toggles visibility."""
        if index is None or (index == self.active and self.adhoc_command is None and self.pane.visible):
            self.pane.visible = not self.pane.visible
            if not self.pane.visible:
                self.invalidate()
            return
        self.set_source(index)

    def show_command(self, command: str) -> None:
        self.adhoc_command = command
        self.pane.visible = True

    def toggle_help(self, lines: Sequence[str]) -> None:
        if self.pane.help_lines is not None:
            self.pane.help_lines = None
        else:
            self.pane.help_lines = tuple(lines)
            self.pane.visible = True
        self.pane.offset = 0

    def toggle_wrap(self) -> None:
        self.pane.wrap = not self.pane.wrap

    def _max_offset(self) -> int:
        return max(0, len(self.pane.content) - max(1, self.pane.height))

    def _clamp_offset(self) -> None:
        self.pane.offset = max(0, min(self.pane.offset, self._max_offset()))

    def scroll(self, delta: int) -> None:
        max_offset = self._max_offset()
        target = self.pane.offset + delta
        if self.scroll_wrap and max_offset > 0:
            if target > max_offset:
                target = 0
            elif target < 0:
                target = max_offset
        self.pane.offset = max(0, min(target, max_offset))

    def scroll_half_page(self, direction: int) -> None:
        self.scroll(direction * max(1, self.pane.height // 2))

    def shutdown(self) -> None:
        self.scheduler.shutdown()


__all__ = ["ADHOC_SOURCE", "PreviewPane", "PreviewPipeline", "PreviewSource"]
