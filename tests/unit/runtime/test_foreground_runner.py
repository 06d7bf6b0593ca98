"""Tests for serialized foreground command execution."""

from __future__ import annotations

import contextlib
import subprocess
import threading
import unittest

from lazypicker.runtime.foreground import ForegroundRunner


class _FakeTerminal:
    def __init__(self) -> None:
        self.events: list[str] = []

    @contextlib.contextmanager
    def released(self):
        self.events.append("release")
        try:
            yield
        finally:
            self.events.append("reclaim")


def _completed(returncode: int = 0) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode)


class ForegroundRunnerTests(unittest.TestCase):
    def test_execute_runs_shell_command_around_terminal_release(self) -> None:
        terminal = _FakeTerminal()
        calls: list[tuple[list[str], dict[str, str]]] = []

        def run(argv, env, check):
            terminal.events.append("run")
            calls.append((argv, env))
            return _completed()

        runner = ForegroundRunner(terminal, run=run)
        error = runner.execute("vim notes.txt", {"LAZYPICKER_QUERY": "no"})

        self.assertIsNone(error)
        self.assertEqual(terminal.events, ["release", "run", "reclaim"])
        self.assertEqual(calls[0][0], ["sh", "-c", "vim notes.txt"])
        self.assertEqual(calls[0][1]["LAZYPICKER_QUERY"], "no")

    def test_nonzero_exit_returns_error_message(self) -> None:
        runner = ForegroundRunner(_FakeTerminal(), run=lambda argv, env, check: _completed(2))

        self.assertEqual(runner.execute("false", {}), "false: exited with status 2")

    def test_spawn_failure_returns_error_and_reclaims_terminal(self) -> None:
        terminal = _FakeTerminal()

        def run(argv, env, check):
            raise FileNotFoundError("sh")

        runner = ForegroundRunner(terminal, run=run)
        error = runner.execute("whatever", {})

        self.assertIn("failed to launch", error)
        self.assertEqual(terminal.events, ["release", "reclaim"])

    def test_concurrent_requests_run_one_at_a_time(self) -> None:
        first_started = threading.Event()
        allow_first_finish = threading.Event()
        order: list[str] = []

        def run(argv, env, check):
            command = argv[-1]
            order.append(f"start {command}")
            if command == "first":
                first_started.set()
                allow_first_finish.wait(timeout=2.0)
            order.append(f"end {command}")
            return _completed()

        runner = ForegroundRunner(_FakeTerminal(), run=run)
        errors: list[str | None] = []
        worker = threading.Thread(target=lambda: errors.append(runner.execute("first", {})))
        worker.start()
        self.assertTrue(first_started.wait(timeout=2.0))

        second = threading.Thread(target=lambda: errors.append(runner.execute("second", {})))
        second.start()
        allow_first_finish.set()
        worker.join(timeout=2.0)
        second.join(timeout=2.0)

        self.assertEqual(order, ["start first", "end first", "start second", "end second"])
        self.assertEqual(runner.max_active, 1)
        self.assertEqual(errors, [None, None])

    def test_requests_beyond_queue_limit_are_rejected(self) -> None:
        first_started = threading.Event()
        allow_finish = threading.Event()
        ran: list[str] = []

        def run(argv, env, check):
            ran.append(argv[-1])
            first_started.set()
            allow_finish.wait(timeout=2.0)
            return _completed()

        runner = ForegroundRunner(_FakeTerminal(), queue_limit=0, run=run)
        worker = threading.Thread(target=runner.execute, args=("first", {}))
        worker.start()
        self.assertTrue(first_started.wait(timeout=2.0))

        error = runner.execute("second", {})
        allow_finish.set()
        worker.join(timeout=2.0)

        self.assertIn("busy", error)
        self.assertEqual(ran, ["first"])

    def test_become_stops_children_then_execs(self) -> None:
        terminal = _FakeTerminal()
        execs: list[tuple[str, dict[str, str]]] = []

        def exec_command(command, env):
            terminal.events.append("exec")
            execs.append((command, env))

        runner = ForegroundRunner(
            terminal,
            exec_command=exec_command,
            before_exec=lambda: terminal.events.append("stop"),
        )
        self.assertIsNone(runner.become("less file", {"LAZYPICKER_POS": "3"}))

        self.assertEqual(terminal.events, ["stop", "release", "exec", "reclaim"])
        self.assertEqual(execs[0][0], "less file")
        self.assertEqual(execs[0][1]["LAZYPICKER_POS"], "3")

    def test_become_failure_returns_error(self) -> None:
        def exec_command(command, env):
            raise FileNotFoundError("no shell")

        runner = ForegroundRunner(_FakeTerminal(), exec_command=exec_command)

        self.assertIn("failed to exec", runner.become("less file", {}))


if __name__ == "__main__":
    unittest.main()
