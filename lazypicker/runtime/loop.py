"""Main interactive event loop for the picker.

Each pass merges background results at fixed poll points, dispatches the
synthetic events raised on the previous pass, redraws when dirty, and then
waits for terminal input. All feature logic lives in the picker machine and
the injected callbacks; the loop is wiring only.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..dispatch.triggers import EVENT_RESIZE
from ..errors import Termination
from ..input import InputEvent
from ..matching.worker import Snapshot
from ..picker.machine import PickerMachine
from ..preview.requests import PreviewResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    idle_timeout_ms: int = 120
    busy_timeout_ms: int = 25
    spinner_frame_seconds: float = 0.1


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Injected operations used by ``run_main_loop``."""

    screen_size: Callable[[], tuple[int, int]]
    poll_snapshot: Callable[[], Snapshot | None]
    drain_preview_results: Callable[[], list[PreviewResult]]
    read_event: Callable[[int], InputEvent | None]
    has_pending_input: Callable[[], bool]
    render: Callable[[bool], None]
    drain_source_errors: Callable[[], list[str]] = list


def run_main_loop(
    machine: PickerMachine,
    terminal,
    timing: RuntimeLoopTiming,
    callbacks: RuntimeLoopCallbacks,
    clock: Callable[[], float] = time.monotonic,
) -> Termination:
    """Run the picker loop until an action terminates it; return the outcome."""
    state = machine.state
    ops = callbacks
    spinner_frame = -1

    with terminal.raw_mode():
        while True:
            width, height = ops.screen_size()
            if (width, height) != (state.screen_width, state.screen_height):
                state.screen_width, state.screen_height = width, height
                state.emit(EVENT_RESIZE)
                state.force_redraw = True
                state.dirty = True

            now = clock()
            if state.status_message and now >= state.status_message_until:
                state.status_message = ""
                state.status_message_until = 0.0
                state.dirty = True
            for message in ops.drain_source_errors():
                machine.set_status(message)

            snapshot = ops.poll_snapshot()
            if snapshot is not None:
                machine.apply_snapshot(snapshot)
            for result in ops.drain_preview_results():
                machine.apply_preview_result(result)

            machine.run_pending_events()
            if state.terminated:
                break

            busy = state.snapshot.running or machine.pipeline.pane.loading
            if busy:
                next_frame = int(now / timing.spinner_frame_seconds)
                if next_frame != spinner_frame:
                    spinner_frame = next_frame
                    state.dirty = True

            if state.dirty or state.force_redraw:
                ops.render(state.force_redraw)
                state.dirty = False
                state.force_redraw = False

            timeout_ms = timing.busy_timeout_ms if busy or state.pending_events else timing.idle_timeout_ms
            try:
                input_event = ops.read_event(timeout_ms)
            except KeyboardInterrupt:
                # ctrl-c arrives as a byte in raw mode; a stray SIGINT is ignored.
                continue
            while input_event is not None:
                machine.handle_trigger(input_event.trigger)
                if state.terminated or not ops.has_pending_input():
                    break
                input_event = ops.read_event(0)
            if state.terminated:
                break

    termination = state.termination
    if termination is None:
        raise RuntimeError("picker loop stopped without a termination")
    logger.debug("picker terminated: %s", termination)
    return termination


__all__ = ["RuntimeLoopCallbacks", "RuntimeLoopTiming", "run_main_loop"]
