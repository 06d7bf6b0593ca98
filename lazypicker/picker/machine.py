"""Picker state machine: the single entry point that mutates picker state.

Actions from a binding run strictly in order. An action that terminates the
picker (Accept/Quit) stops the rest of the sequence. Side-effecting system
actions (execute, become, reload, print) go through :class:`SystemOps` so
the machine itself never touches the terminal or spawns processes.

Background results are merged only here, through :meth:`apply_snapshot`
and :meth:`apply_preview_result`, and only when they are not stale.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..columns import ColumnSplitter, TemplateContext, format_template
from ..config import PickerConfig
from ..dispatch.actions import Action, ActionKind
from ..dispatch.triggers import (
    EVENT_CURSOR_CHANGE,
    EVENT_OVERLAY_CHANGE,
    EVENT_PREVIEW_CHANGE,
    EVENT_PREVIEW_SET,
    EVENT_RESYNCED,
    EVENT_SYNCED,
    Trigger,
    event,
)
from ..errors import Abort, Accept
from ..matching.worker import MatchWorker, Snapshot
from ..preview.pipeline import PreviewPipeline
from ..preview.requests import PreviewResult
from .query import QueryController
from .state import PickerState

logger = logging.getLogger(__name__)

ENV_PREFIX = "LAZYPICKER_"


@dataclass(frozen=True)
class SystemOps:
    """Injected side effects for system actions.

    ``execute`` and ``reload`` return an error message or ``None``.
    ``become`` does not return on success.
    """

    execute: Callable[[str, dict[str, str]], str | None]
    become: Callable[[str, dict[str, str]], str | None]
    reload: Callable[[str, dict[str, str]], str | None]
    print_line: Callable[[str], None]


class PickerMachine:
    def __init__(
        self,
        state: PickerState,
        config: PickerConfig,
        worker: MatchWorker,
        pipeline: PreviewPipeline,
        ops: SystemOps,
        help_lines: Callable[[], Sequence[str]] = lambda: (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.state = state
        self.config = config
        self.worker = worker
        self.pipeline = pipeline
        self.ops = ops
        self.bindings = config.bindings
        self.splitter: ColumnSplitter = worker.store.splitter
        self._help_lines = help_lines
        self._clock = clock
        self.query = QueryController(state, self._requery, config.history)
        self._last_target: int | None = None
        self._last_running = True
        self._reloaded = False
        self._preview_forced = False
        self._handlers: dict[ActionKind, Callable[[Action], None]] = {
            ActionKind.SELECT: self._select,
            ActionKind.DESELECT: self._deselect,
            ActionKind.TOGGLE: self._toggle,
            ActionKind.CYCLE_ALL: self._cycle_all,
            ActionKind.CLEAR_ALL: self._clear_all,
            ActionKind.ACCEPT: self._accept,
            ActionKind.QUIT: self._quit,
            ActionKind.UP: lambda a: self._move_highlight(-int(a.payload or 1)),
            ActionKind.DOWN: lambda a: self._move_highlight(int(a.payload or 1)),
            ActionKind.POS: self._pos,
            ActionKind.FORWARD_CHAR: lambda _a: self.query.forward_char(),
            ActionKind.BACKWARD_CHAR: lambda _a: self.query.backward_char(),
            ActionKind.FORWARD_WORD: lambda _a: self.query.forward_word(),
            ActionKind.BACKWARD_WORD: lambda _a: self.query.backward_word(),
            ActionKind.INPUT_POS: lambda a: self.query.move_to(int(a.payload)),
            ActionKind.CYCLE_PREVIEW: self._cycle_preview,
            ActionKind.PREVIEW: self._preview_command,
            ActionKind.HELP: self._help,
            ActionKind.SWITCH_PREVIEW: self._switch_preview,
            ActionKind.SET_PREVIEW: self._set_preview,
            ActionKind.TOGGLE_WRAP_PREVIEW: lambda _a: self.pipeline.toggle_wrap(),
            ActionKind.PREVIEW_UP: lambda a: self.pipeline.scroll(-int(a.payload or 1)),
            ActionKind.PREVIEW_DOWN: lambda a: self.pipeline.scroll(int(a.payload or 1)),
            ActionKind.PREVIEW_HALF_PAGE_UP: lambda _a: self.pipeline.scroll_half_page(-1),
            ActionKind.PREVIEW_HALF_PAGE_DOWN: lambda _a: self.pipeline.scroll_half_page(1),
            ActionKind.INPUT: lambda a: self.query.insert(str(a.payload or "")),
            ActionKind.SET_INPUT: lambda a: self.query.set_text(str(a.payload or "")),
            ActionKind.CANCEL: lambda _a: self.query.clear(),
            ActionKind.DELETE_CHAR: lambda _a: self.query.delete_char(),
            ActionKind.DELETE_WORD: lambda _a: self.query.delete_word(),
            ActionKind.DELETE_LINE_START: lambda _a: self.query.delete_to_start(),
            ActionKind.DELETE_LINE_END: lambda _a: self.query.delete_to_end(),
            ActionKind.HISTORY_UP: lambda _a: self.query.history_up(),
            ActionKind.HISTORY_DOWN: lambda _a: self.query.history_down(),
            ActionKind.TOGGLE_WRAP: self._toggle_results_wrap,
            ActionKind.SET_HEADER: lambda a: self._set_text_field("header", a.payload or ""),
            ActionKind.SET_FOOTER: lambda a: self._set_text_field("footer", a.payload or ""),
            ActionKind.SET_PROMPT: lambda a: self._set_text_field("prompt", a.payload or self.config.prompt),
            ActionKind.COLUMN: lambda a: self._set_column(int(a.payload)),
            ActionKind.CYCLE_COLUMN: lambda _a: self._set_column((self.state.active_column + 1) % self.splitter.count),
            ActionKind.REDRAW: self._redraw,
            ActionKind.OVERLAY: self._overlay,
            ActionKind.EXECUTE: self._execute,
            ActionKind.BECOME: self._become,
            ActionKind.RELOAD: self._reload,
            ActionKind.PRINT: self._print,
        }

    # Entry points

    def handle_trigger(self, trigger: Trigger) -> bool:
        """Resolve ``trigger`` through the binding table and run its actions."""
        return self.dispatch(self.bindings.resolve(trigger))

    def dispatch(self, actions: Sequence[Action]) -> bool:
        """Run ``actions`` in order; return whether the picker terminated."""
        state = self.state
        for action in actions:
            if state.terminated:
                break
            logger.debug("dispatch %s", action)
            self._handlers[action.kind](action)
            state.dirty = True
        if not state.terminated:
            self.sync_preview()
        return state.terminated

    def run_pending_events(self) -> bool:
        """Dispatch events collected so far; events they raise wait for the next call."""
        pending = list(self.state.pending_events)
        self.state.pending_events.clear()
        for name in pending:
            if self.state.terminated:
                break
            self.handle_trigger(event(name))
        return self.state.terminated

    def apply_snapshot(self, snapshot: Snapshot) -> bool:
        """Adopt ``snapshot`` unless it is stale; reclamp the highlight."""
        state = self.state
        if snapshot.epoch != self.worker.epoch:
            return False
        if snapshot.generation <= state.snapshot.generation:
            return False
        state.snapshot = snapshot
        self._clamp_highlight()
        if self._last_running and not snapshot.running:
            state.emit(EVENT_RESYNCED if self._reloaded else EVENT_SYNCED)
            self._reloaded = False
        self._last_running = snapshot.running
        state.dirty = True
        self.sync_preview()
        return True

    def apply_preview_result(self, result: PreviewResult) -> bool:
        if not self.pipeline.apply(result):
            return False
        self.state.emit(EVENT_PREVIEW_CHANGE)
        self.state.dirty = True
        return True

    def set_viewport(self, results_height: int, preview_height: int) -> None:
        """Record the rows available to results and preview, then reclamp."""
        self.state.results_height = max(1, results_height)
        self.pipeline.pane.height = max(0, preview_height)
        self._clamp_highlight()
        self.pipeline.scroll(0)

    def set_status(self, message: str) -> None:
        self.state.status_message = message
        self.state.status_message_until = self._clock() + self.config.status_seconds
        self.state.dirty = True

    def note_query_error(self) -> None:
        error = self.worker.last_error
        if error is not None:
            self.set_status(str(error))

    # Templates and environment

    def _record_pair(self, index: int | None) -> tuple[str, tuple[str, ...]] | None:
        if index is None:
            return None
        record = self.worker.store.get(index)
        if record is None:
            return None
        return record.text, record.columns

    def template_context(self) -> TemplateContext:
        selected = tuple(
            pair for pair in (self._record_pair(idx) for idx in sorted(self.state.selection)) if pair is not None
        )
        return TemplateContext(
            splitter=self.splitter,
            current=self._record_pair(self.state.highlighted_index),
            selected=selected,
            active_column=self.state.active_column,
            query=self.state.query,
        )

    def command_env(self) -> dict[str, str]:
        state = self.state
        return {
            f"{ENV_PREFIX}QUERY": state.query,
            f"{ENV_PREFIX}POS": str(state.highlighted),
            f"{ENV_PREFIX}MATCH_COUNT": str(state.match_count),
            f"{ENV_PREFIX}TOTAL_COUNT": str(len(self.worker.store)),
            f"{ENV_PREFIX}SELECT_COUNT": str(len(state.selection)),
            f"{ENV_PREFIX}LINES": str(state.screen_height),
            f"{ENV_PREFIX}COLUMNS": str(state.screen_width),
        }

    def format_output(self, index: int) -> str:
        pair = self._record_pair(index)
        context = TemplateContext(
            splitter=self.splitter,
            current=pair,
            active_column=self.state.active_column,
            query=self.state.query,
        )
        return format_template(self.config.output_template, context)

    # Highlight and preview bookkeeping

    def _clamp_highlight(self) -> None:
        state = self.state
        count = state.match_count
        state.highlighted = max(0, min(state.highlighted, count - 1)) if count else 0
        height = max(1, state.results_height)
        if state.highlighted < state.results_offset:
            state.results_offset = state.highlighted
        elif state.highlighted >= state.results_offset + height:
            state.results_offset = state.highlighted - height + 1
        state.results_offset = max(0, min(state.results_offset, max(0, count - height)))

    def sync_preview(self) -> None:
        """Issue a preview request when the highlighted record changed."""
        target = self.state.highlighted_index
        if target != self._last_target:
            self._last_target = target
            self.state.emit(EVENT_CURSOR_CHANGE)
        template = self.pipeline.active_template
        if template is None or target is None:
            self.pipeline.retarget(target)
            return
        if target == self.pipeline.pane.target and not self._preview_forced:
            return
        self._preview_forced = False
        command = format_template(template, self.template_context(), quote=True)
        self.pipeline.issue(target, command, self.command_env())

    def _force_preview(self) -> None:
        self._preview_forced = True

    # Selection

    def _select(self, _action: Action) -> None:
        index = self.state.highlighted_index
        if self.config.multi and index is not None:
            self.state.selection.add(index)

    def _deselect(self, _action: Action) -> None:
        index = self.state.highlighted_index
        if index is not None:
            self.state.selection.discard(index)

    def _toggle(self, _action: Action) -> None:
        index = self.state.highlighted_index
        if index is None or not self.config.multi:
            return
        if index in self.state.selection:
            self.state.selection.discard(index)
        else:
            self.state.selection.add(index)

    def _cycle_all(self, _action: Action) -> None:
        if not self.config.multi:
            return
        selection = self.state.selection
        for index in self.state.snapshot.indices():
            if index in selection:
                selection.discard(index)
            else:
                selection.add(index)

    def _clear_all(self, _action: Action) -> None:
        self.state.selection.clear()

    def _accept(self, _action: Action) -> None:
        state = self.state
        if state.selection:
            state.termination = Accept(tuple(sorted(state.selection)))
            return
        index = state.highlighted_index
        if index is not None:
            state.termination = Accept((index,))
        elif self.config.allow_empty:
            state.termination = Accept(())

    def _quit(self, action: Action) -> None:
        self.state.termination = Abort(int(action.payload if action.payload is not None else 1))

    # Navigation

    def _move_highlight(self, delta: int) -> None:
        self.state.highlighted += delta
        self._clamp_highlight()

    def _pos(self, action: Action) -> None:
        position = int(action.payload)
        if position < 0:
            position = self.state.match_count + position
        self.state.highlighted = position
        self._clamp_highlight()

    # Preview

    def _cycle_preview(self, _action: Action) -> None:
        self.pipeline.cycle()
        self.state.emit(EVENT_PREVIEW_SET)
        self._force_preview()

    def _set_preview(self, action: Action) -> None:
        self.pipeline.set_source(action.payload if action.payload is None else int(action.payload))
        self.state.emit(EVENT_PREVIEW_SET)
        self._force_preview()

    def _switch_preview(self, action: Action) -> None:
        self.pipeline.switch_source(action.payload if action.payload is None else int(action.payload))
        self.state.emit(EVENT_PREVIEW_SET)
        self._force_preview()

    def _preview_command(self, action: Action) -> None:
        self.pipeline.show_command(str(action.payload))
        self.state.emit(EVENT_PREVIEW_SET)
        self._force_preview()

    def _help(self, action: Action) -> None:
        lines = str(action.payload).splitlines() if action.payload else list(self._help_lines())
        self.pipeline.toggle_help(lines)

    # Edit and display

    def _requery(self, query: str) -> None:
        if not self.worker.requery(query, self.state.active_column):
            self.note_query_error()

    def _toggle_results_wrap(self, _action: Action) -> None:
        self.state.results_wrap = not self.state.results_wrap

    def _set_text_field(self, name: str, value: object) -> None:
        setattr(self.state, name, str(value))

    def _set_column(self, column: int) -> None:
        if not 0 <= column < self.splitter.count or column == self.state.active_column:
            return
        self.state.active_column = column
        self.state.highlighted = 0
        self._requery(self.state.query)

    def _redraw(self, _action: Action) -> None:
        self.state.force_redraw = True

    def _overlay(self, action: Action) -> None:
        index = int(action.payload)
        if not 0 <= index < len(self.config.overlays):
            return
        self.state.overlay = None if self.state.overlay == index else index
        self.state.emit(EVENT_OVERLAY_CHANGE)

    # System

    def _resolve_command(self, template: str) -> str:
        return format_template(template, self.template_context(), quote=True)

    def _execute(self, action: Action) -> None:
        error = self.ops.execute(self._resolve_command(str(action.payload)), self.command_env())
        self.state.force_redraw = True
        if error:
            self.set_status(error)

    def _become(self, action: Action) -> None:
        error = self.ops.become(self._resolve_command(str(action.payload)), self.command_env())
        if error:
            self.set_status(error)

    def _reload(self, action: Action) -> None:
        command = self._resolve_command(str(action.payload))
        env = self.command_env()
        state = self.state
        self.worker.restart()
        state.snapshot = Snapshot(generation=state.snapshot.generation, epoch=self.worker.epoch)
        state.selection.clear()
        state.highlighted = 0
        state.results_offset = 0
        self._reloaded = True
        self._last_running = True
        self.pipeline.retarget(None)
        error = self.ops.reload(command, env)
        if error:
            self.set_status(error)

    def _print(self, action: Action) -> None:
        if action.payload:
            text = format_template(str(action.payload), self.template_context())
        else:
            index = self.state.highlighted_index
            if index is None:
                return
            text = self.format_output(index)
        self.ops.print_line(text)


__all__ = ["ENV_PREFIX", "PickerMachine", "SystemOps"]
