"""Foreground command runner for Execute and Become.

Commands run attached to the real terminal, so raw mode and the alternate
screen are released for each one and reclaimed afterwards. Requests are
serialized through a bounded FIFO: a request made while another command is
in flight waits its turn, and one that would overflow the queue is rejected
with an error message instead of running.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from ..errors import SubprocessError

logger = logging.getLogger(__name__)

SHELL = "/bin/sh"


def exec_shell(command: str, env: Mapping[str, str]) -> None:
    """Replace the current process with ``sh -c command``."""
    os.execve(SHELL, ["sh", "-c", command], dict(env))


@dataclass
class _Job:
    command: str
    env: dict[str, str]
    done: threading.Event = field(default_factory=threading.Event)
    error: str | None = None


class ForegroundRunner:
    """Run foreground commands one at a time around terminal release."""

    def __init__(
        self,
        terminal,
        queue_limit: int = 8,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        exec_command: Callable[[str, Mapping[str, str]], None] = exec_shell,
        before_exec: Callable[[], None] | None = None,
    ) -> None:
        self.terminal = terminal
        self.queue_limit = queue_limit
        self._run = run
        self._exec = exec_command
        self._before_exec = before_exec
        self._lock = threading.Lock()
        self._queue: deque[_Job] = deque()
        self._draining = False
        self.active = 0
        self.max_active = 0

    def _environment(self, env: Mapping[str, str]) -> dict[str, str]:
        merged = dict(os.environ)
        merged.update(env)
        return merged

    def _submit(self, command: str, env: Mapping[str, str]) -> _Job | None:
        with self._lock:
            if self._draining and len(self._queue) >= self.queue_limit:
                return None
            job = _Job(command=command, env=self._environment(env))
            self._queue.append(job)
            return job

    def _run_job(self, job: _Job) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        logger.info("execute: %s", job.command)
        try:
            with self.terminal.released():
                try:
                    completed = self._run(["sh", "-c", job.command], env=job.env, check=False)
                except OSError as exc:
                    job.error = str(SubprocessError(job.command, f"failed to launch {job.command!r}: {exc}"))
                else:
                    if completed.returncode != 0:
                        failure = SubprocessError(
                            job.command,
                            f"{job.command}: exited with status {completed.returncode}",
                            exit_code=completed.returncode,
                        )
                        job.error = str(failure)
        finally:
            self.active -= 1
            job.done.set()

    def _drain(self) -> None:
        with self._lock:
            if self._draining:
                return
            self._draining = True
        try:
            while True:
                with self._lock:
                    if not self._queue:
                        return
                    job = self._queue.popleft()
                self._run_job(job)
        finally:
            with self._lock:
                self._draining = False

    def execute(self, command: str, env: Mapping[str, str]) -> str | None:
        """Queue ``command`` and run the queue; return an error message or ``None``.

        A call made while the queue is already draining (from another thread)
        returns once its own job has run.
        """
        job = self._submit(command, env)
        if job is None:
            logger.warning("execute rejected, queue full: %s", command)
            return f"busy: too many queued commands, dropped {command!r}"
        self._drain()
        job.done.wait()
        if job.error:
            logger.warning("%s", job.error)
        return job.error

    def become(self, command: str, env: Mapping[str, str]) -> str | None:
        """Release the terminal and replace this process with ``command``.

        Returns only when the exec itself failed, after reclaiming the
        terminal.
        """
        self._drain()
        logger.info("become: %s", command)
        if self._before_exec is not None:
            self._before_exec()
        with self.terminal.released():
            try:
                self._exec(command, self._environment(env))
            except OSError as exc:
                error = str(SubprocessError(command, f"failed to exec {command!r}: {exc}"))
                logger.warning("%s", error)
                return error
        return None


__all__ = ["ForegroundRunner", "exec_shell"]
