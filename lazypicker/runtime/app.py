"""Picker composition root.

``run_picker`` wires the matching worker, preview pipeline, sources,
foreground runner, terminal, and renderer around one :class:`PickerMachine`,
runs the loop, and tears every background unit down before returning.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import BinaryIO

from ..config import PickerConfig
from ..dispatch.triggers import EVENT_START
from ..errors import Accept, Termination
from ..input import KeyReader
from ..matching.worker import MatchWorker
from ..picker.machine import PickerMachine, SystemOps
from ..picker.state import PickerState
from ..preview.pipeline import PreviewPipeline
from ..preview.runner import PreviewScheduler
from ..render import RenderContext, chrome_rows, frame_geometry, render_frame
from ..render.help import help_lines
from .foreground import ForegroundRunner
from .loop import RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop
from .sources import SourceFeeder
from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PickerResult:
    """Outcome of one picker session.

    ``output`` holds the accepted records formatted by the output template;
    ``printed`` holds lines queued by ``Print`` actions, in order.
    """

    termination: Termination
    output: list[str] = field(default_factory=list)
    printed: list[str] = field(default_factory=list)


def initial_state(config: PickerConfig) -> PickerState:
    return PickerState(
        query=config.query,
        cursor=len(config.query),
        prompt=config.prompt,
        header=config.header,
        footer=config.footer,
        active_column=config.active_column,
        results_wrap=config.results_wrap,
    )


class PickerSession:
    """One picker run: owns every background unit and the terminal hand-off."""

    def __init__(self, config: PickerConfig, terminal: TerminalController) -> None:
        self.config = config
        self.terminal = terminal
        self.worker = MatchWorker(config.splitter())
        self.pipeline = PreviewPipeline(
            config.previews,
            PreviewScheduler(config.preview_max_lines, config.preview_debounce_ms / 1000.0),
            reset_on_change=config.preview_reset_on_change,
            scroll_wrap=config.preview_scroll_wrap,
            initial_wrap=config.preview_wrap,
        )
        self.feeder = SourceFeeder(config.input_separator)
        self.foreground = ForegroundRunner(
            terminal,
            queue_limit=config.foreground_queue_limit,
            before_exec=self._stop_children,
        )
        self.printed: list[str] = []
        self.state = initial_state(config)
        self.machine = PickerMachine(
            self.state,
            config,
            self.worker,
            self.pipeline,
            SystemOps(
                execute=self.foreground.execute,
                become=self.foreground.become,
                reload=self._reload_source,
                print_line=self.printed.append,
            ),
            help_lines=lambda: help_lines(config.bindings, color=not config.no_color),
        )
        self.reader = KeyReader(terminal.stdin_fd)
        self._spinner = 0

    def _stop_children(self) -> None:
        # Source and preview children are not reaped across exec.
        self.feeder.stop()
        self.pipeline.scheduler.cancel()

    def _reload_source(self, command: str, env: dict[str, str]) -> str | None:
        return self.feeder.start_command(command, self.worker.injector(), env)

    def start(
        self,
        lines: Iterable[str] | None = None,
        stream: BinaryIO | None = None,
    ) -> None:
        """Seed the query and start every configured record source."""
        if not self.worker.requery(self.config.query, self.config.active_column):
            self.machine.note_query_error()
            self.worker.requery("", self.config.active_column)
        if lines is not None:
            self.worker.append(lines)
        if stream is not None:
            self.feeder.feed_stream(stream, self.worker.injector())
        elif self.config.source_command:
            error = self.feeder.start_command(self.config.source_command, self.worker.injector())
            if error:
                self.machine.set_status(error)
        self.state.emit(EVENT_START)

    def render(self, full: bool) -> None:
        state = self.state
        pane = self.pipeline.pane
        width, height = state.screen_width, state.screen_height
        geometry = frame_geometry(width, height, self.config.layouts, pane.visible)
        results_height = geometry.results_height(chrome_rows(state.header, state.footer))
        preview_height = max(0, geometry.preview_rect.height - 1) if geometry.preview_rect else 0
        self.machine.set_viewport(results_height, preview_height)

        snapshot = state.snapshot
        window = range(state.results_offset, min(len(snapshot), state.results_offset + results_height))
        items: list[tuple[str, bool]] = []
        for position in window:
            index = snapshot.index_at(position)
            record = self.worker.store.get(index) if index is not None else None
            if record is not None:
                items.append((record.text, index in state.selection))
        overlay_text = None
        if state.overlay is not None and 0 <= state.overlay < len(self.config.overlays):
            overlay_text = self.config.overlays[state.overlay]
        self._spinner += 1
        context = RenderContext(
            width=width,
            height=height,
            prompt=state.prompt,
            query=state.query,
            cursor=state.cursor,
            items=items,
            highlighted_row=state.highlighted - state.results_offset,
            match_count=state.match_count,
            total_count=len(self.worker.store),
            selected_count=len(state.selection),
            running=snapshot.running or self.feeder.running,
            spinner_frame=self._spinner,
            header=state.header,
            footer=state.footer,
            status_message=state.status_message,
            results_wrap=state.results_wrap,
            layouts=self.config.layouts,
            preview_visible=pane.visible,
            preview_lines=pane.content,
            preview_offset=pane.offset,
            preview_wrap=pane.wrap,
            preview_title="help" if pane.help_lines is not None else self.pipeline.active_name,
            preview_error=None if pane.help_lines is not None else pane.error,
            preview_loading=pane.loading and pane.help_lines is None,
            overlay_text=overlay_text,
            color=not self.config.no_color,
        )
        render_frame(context, self.terminal.write, full=full)

    def callbacks(self) -> RuntimeLoopCallbacks:
        return RuntimeLoopCallbacks(
            screen_size=self.terminal.size,
            poll_snapshot=self.worker.poll,
            drain_preview_results=self.pipeline.scheduler.drain_results,
            read_event=self.reader.read_event,
            has_pending_input=self.reader.has_pending,
            render=self.render,
            drain_source_errors=self.feeder.drain_errors,
        )

    def run(self, timing: RuntimeLoopTiming | None = None) -> PickerResult:
        try:
            termination = run_main_loop(self.machine, self.terminal, timing or RuntimeLoopTiming(), self.callbacks())
            output: list[str] = []
            if isinstance(termination, Accept):
                output = [self.machine.format_output(index) for index in termination.indices]
            return PickerResult(termination=termination, output=output, printed=list(self.printed))
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Cancel ranking, preview, and source work."""
        self.feeder.shutdown()
        self.pipeline.shutdown()
        self.worker.shutdown()


def run_picker(
    config: PickerConfig,
    lines: Iterable[str] | None = None,
    stream: BinaryIO | None = None,
    terminal: TerminalController | None = None,
) -> PickerResult:
    """Run an interactive picker over ``lines`` and/or ``stream``.

    When ``terminal`` is omitted the picker opens ``/dev/tty`` itself and
    closes it afterwards.
    """
    owned = terminal is None
    if terminal is None:
        terminal = TerminalController.open_tty(mouse=config.mouse)
    try:
        session = PickerSession(config, terminal)
        session.start(lines=lines, stream=stream)
        return session.run()
    finally:
        if owned:
            terminal.close()


__all__ = ["PickerResult", "PickerSession", "initial_state", "run_picker"]
