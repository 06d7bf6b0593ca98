"""Background runner for preview commands.

A single daemon thread runs one command at a time. Scheduling a request
replaces any pending one and terminates the command in flight, so bursts of
highlight changes cost at most one extra process.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from queue import Empty, Queue

from ..errors import SubprocessError
from .requests import PreviewRequest, PreviewResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 2000


def terminate_process(proc: subprocess.Popen) -> None:
    """Stop ``proc`` and its process group; ignore already-exited processes."""
    if proc.poll() is not None:
        return
    try:
        os.killpg(proc.pid, signal.SIGTERM)
    except (ProcessLookupError, PermissionError):
        try:
            proc.terminate()
        except ProcessLookupError:
            pass


class PreviewScheduler:
    """Single-threaded latest-request-wins preview scheduler."""

    def __init__(self, max_lines: int = DEFAULT_MAX_LINES, debounce_seconds: float = 0.0) -> None:
        self.max_lines = max_lines
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._pending: PreviewRequest | None = None
        self._running = False
        self._closed = False
        self._current: tuple[PreviewRequest, subprocess.Popen] | None = None
        self._current_killed = False
        self._results: Queue[PreviewResult] = Queue()

    def _worker(self) -> None:
        while True:
            with self._lock:
                request = self._pending
                self._pending = None
                if request is None or self._closed:
                    self._running = False
                    return

            if self.debounce_seconds > 0:
                time.sleep(self.debounce_seconds)
                with self._lock:
                    if self._pending is not None:
                        continue

            try:
                result = self._run(request)
            except SubprocessError as exc:
                logger.info("preview command failed: %s", exc)
                result = PreviewResult(request=request, error=str(exc), exit_code=exc.exit_code)
            if result is not None:
                self._results.put(result)

    def _spawn(self, request: PreviewRequest) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                request.command,
                shell=True,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env={**os.environ, **request.env},
                start_new_session=True,
            )
        except OSError as exc:
            raise SubprocessError(request.command, f"failed to run preview: {exc}") from exc

    def _run(self, request: PreviewRequest) -> PreviewResult | None:
        proc = self._spawn(request)
        stdout = proc.stdout
        if stdout is None:
            terminate_process(proc)
            raise SubprocessError(request.command, "preview command has no output pipe")
        with self._lock:
            self._current = (request, proc)
            self._current_killed = False
            superseded = self._pending is not None or self._closed
        if superseded:
            terminate_process(proc)

        lines: list[str] = []
        try:
            for raw in stdout:
                lines.append(raw.decode("utf-8", errors="replace").rstrip("\r\n"))
                if len(lines) >= self.max_lines:
                    terminate_process(proc)
                    break
        finally:
            stdout.close()
            exit_code = proc.wait()

        with self._lock:
            self._current = None
            superseded = self._current_killed or self._pending is not None or self._closed
        if superseded:
            logger.debug("dropping superseded preview for target %d", request.target)
            return None
        if exit_code != 0 and len(lines) < self.max_lines:
            failure = SubprocessError(request.command, f"preview exited with status {exit_code}", exit_code)
            return PreviewResult(request=request, lines=tuple(lines), error=str(failure), exit_code=exit_code)
        return PreviewResult(request=request, lines=tuple(lines), exit_code=exit_code)

    def schedule(self, request: PreviewRequest) -> None:
        """Queue ``request``, replacing pending work and stopping the running command."""
        with self._lock:
            if self._closed:
                return
            self._pending = request
            if self._current is not None:
                self._current_killed = True
                terminate_process(self._current[1])
            if self._running:
                return
            self._running = True

        worker = threading.Thread(target=self._worker, name="lazypicker-preview", daemon=True)
        worker.start()

    def cancel(self) -> None:
        with self._lock:
            self._pending = None
            if self._current is not None:
                self._current_killed = True
                terminate_process(self._current[1])

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
        self.cancel()

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._running

    def drain_results(self) -> list[PreviewResult]:
        """Drain all completed preview results."""
        out: list[PreviewResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


__all__ = ["PreviewScheduler", "terminate_process"]
