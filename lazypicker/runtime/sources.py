"""Record sources: stdin streams and source commands.

Each source is drained by a daemon reader thread that pushes complete lines
through an epoch-bound :class:`~lazypicker.matching.worker.Injector`. When
Reload replaces the worker epoch the old injector refuses further lines and
its reader stops; the previous source process is terminated first so at most
one source command runs at a time.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections.abc import Mapping
from queue import Empty, Queue
from typing import BinaryIO

from ..errors import SubprocessError
from ..matching.worker import Injector
from ..preview.runner import terminate_process

logger = logging.getLogger(__name__)

READ_CHUNK = 64 * 1024


def split_lines(buffer: bytes, separator: bytes) -> tuple[list[str], bytes]:
    """Split complete records out of ``buffer``; return them and the remainder."""
    parts = buffer.split(separator)
    remainder = parts.pop()
    return [_decode(part) for part in parts], remainder


def _decode(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    return text[:-1] if text.endswith("\r") else text


def read_records(data: bytes, separator: bytes) -> list[str]:
    """Split a complete input into records, keeping an unterminated last one."""
    lines, remainder = split_lines(data, separator)
    if remainder:
        lines.append(_decode(remainder))
    return lines


def read_command_records(command: str, separator: bytes, env: Mapping[str, str] | None = None) -> list[str]:
    """Run ``command`` to completion and split its output into records.

    Raises :class:`SubprocessError` when the command cannot start or exits
    with a non-zero status.
    """
    try:
        completed = subprocess.run(
            command,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            env={**os.environ, **(env or {})},
            check=False,
        )
    except OSError as exc:
        raise SubprocessError(command, f"failed to run source command: {exc}") from exc
    if completed.returncode != 0:
        raise SubprocessError(
            command,
            f"source command exited with status {completed.returncode}",
            completed.returncode,
        )
    return read_records(completed.stdout, separator)


class SourceFeeder:
    """Feed stream or command output into the matching worker."""

    def __init__(self, separator: str = "\n") -> None:
        self.separator = separator.encode("utf-8")
        self._lock = threading.Lock()
        self._proc: subprocess.Popen | None = None
        self._threads: list[threading.Thread] = []
        self._errors: Queue[str] = Queue()
        self._closed = False

    def _pump(self, stream: BinaryIO, injector: Injector, proc: subprocess.Popen | None = None) -> None:
        buffer = b""
        stale = False
        try:
            while True:
                chunk = stream.read1(READ_CHUNK)
                if not chunk:
                    break
                lines, buffer = split_lines(buffer + chunk, self.separator)
                if lines and not injector.push(lines):
                    stale = True
                    break
            if buffer and not stale:
                injector.push([_decode(buffer)])
        except (OSError, ValueError) as exc:
            # ValueError: the stream was closed underneath us by a reload
            logger.debug("source read stopped: %s", exc)
        if proc is None:
            return
        if stale:
            terminate_process(proc)
        exit_code = proc.wait()
        try:
            stream.close()
        except OSError:
            pass
        with self._lock:
            replaced = proc is not self._proc
        if exit_code > 0 and not stale and not replaced:
            failure = SubprocessError(str(proc.args), f"source command exited with status {exit_code}", exit_code)
            self._errors.put(str(failure))

    def _start_thread(self, *args) -> None:
        thread = threading.Thread(target=self._pump, args=args, name="lazypicker-source", daemon=True)
        self._threads.append(thread)
        thread.start()

    def feed_stream(self, stream: BinaryIO, injector: Injector) -> None:
        """Read ``stream`` to EOF in the background."""
        self._start_thread(stream, injector)

    def start_command(self, command: str, injector: Injector, env: Mapping[str, str] | None = None) -> str | None:
        """Run ``command`` as the new source, stopping any previous one.

        Returns an error message when the command cannot be spawned.
        """
        self.stop()
        logger.info("source command: %s", command)
        try:
            proc = subprocess.Popen(
                command,
                shell=True,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env={**os.environ, **(env or {})},
                start_new_session=True,
            )
        except OSError as exc:
            failure = SubprocessError(command, f"failed to run source command: {exc}")
            logger.warning("%s", failure)
            return str(failure)
        stdout = proc.stdout
        if stdout is None:
            terminate_process(proc)
            return str(SubprocessError(command, "source command has no output pipe"))
        with self._lock:
            if self._closed:
                terminate_process(proc)
                return None
            self._proc = proc
        self._start_thread(stdout, injector, proc)
        return None

    def stop(self) -> None:
        """Terminate the running source command, if any."""
        with self._lock:
            proc = self._proc
            self._proc = None
        if proc is not None:
            terminate_process(proc)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
        self.stop()

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def join(self, timeout: float | None = None) -> None:
        for thread in list(self._threads):
            thread.join(timeout)

    def drain_errors(self) -> list[str]:
        out: list[str] = []
        while True:
            try:
                out.append(self._errors.get_nowait())
            except Empty:
                break
        return out


__all__ = ["SourceFeeder", "read_command_records", "read_records", "split_lines"]
