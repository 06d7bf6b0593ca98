"""Tests for terminal mode transitions and the foreground hand-off."""

from __future__ import annotations

import termios
import unittest
from unittest import mock

from lazypicker.errors import TerminalError
from lazypicker.runtime.terminal import TerminalController


def _controller(mouse: bool = True) -> TerminalController:
    with mock.patch("lazypicker.runtime.terminal.termios.tcgetattr", return_value=[0]):
        return TerminalController(stdin_fd=0, stdout_fd=1, mouse=mouse)


class TerminalControllerTests(unittest.TestCase):
    def test_enable_and_disable_use_alternate_screen_and_mouse_sequences(self) -> None:
        saved_state = [1, 2, 3]

        with mock.patch("lazypicker.runtime.terminal.termios.tcgetattr", return_value=saved_state), mock.patch(
            "lazypicker.runtime.terminal.tty.setraw"
        ) as setraw_mock, mock.patch("lazypicker.runtime.terminal.os.write") as write_mock, mock.patch(
            "lazypicker.runtime.terminal.termios.tcsetattr"
        ) as setattr_mock:
            controller = TerminalController(stdin_fd=0, stdout_fd=1)
            controller.enable_tui_mode()
            controller.disable_tui_mode()

        setraw_mock.assert_called_once_with(0, termios.TCSAFLUSH)
        self.assertEqual(
            write_mock.call_args_list[0].args,
            (1, b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1002h\x1b[?1006h"),
        )
        self.assertEqual(
            write_mock.call_args_list[1].args,
            (1, b"\x1b[?1000l\x1b[?1002l\x1b[?1006l\x1b[?25h\x1b[?1049l"),
        )
        setattr_mock.assert_called_once_with(0, termios.TCSAFLUSH, saved_state)

    def test_mouse_disabled_skips_mouse_sequences(self) -> None:
        controller = _controller(mouse=False)

        with mock.patch("lazypicker.runtime.terminal.tty.setraw"), mock.patch(
            "lazypicker.runtime.terminal.os.write"
        ) as write_mock, mock.patch("lazypicker.runtime.terminal.termios.tcsetattr"):
            controller.enable_tui_mode()
            controller.disable_tui_mode()

        self.assertEqual(
            write_mock.call_args_list,
            [mock.call(1, b"\x1b[?1049h\x1b[?25l"), mock.call(1, b"\x1b[?25h\x1b[?1049l")],
        )

    def test_raw_mode_restores_terminal_after_exception(self) -> None:
        controller = _controller()

        with mock.patch.object(controller, "enable_tui_mode") as enable_mock, mock.patch.object(
            controller, "disable_tui_mode"
        ) as disable_mock:
            with self.assertRaises(RuntimeError):
                with controller.raw_mode():
                    raise RuntimeError("boom")

        enable_mock.assert_called_once()
        disable_mock.assert_called_once()

    def test_released_restores_tui_only_when_it_was_active(self) -> None:
        controller = _controller()

        with mock.patch("lazypicker.runtime.terminal.tty.setraw"), mock.patch(
            "lazypicker.runtime.terminal.os.write"
        ), mock.patch("lazypicker.runtime.terminal.termios.tcsetattr") as setattr_mock:
            with controller.released():
                self.assertFalse(controller.active)
            setattr_mock.assert_not_called()

            controller.enable_tui_mode()
            with controller.released():
                self.assertFalse(controller.active)
            self.assertTrue(controller.active)

        setattr_mock.assert_called_once()

    def test_released_reclaims_terminal_after_failure(self) -> None:
        controller = _controller()

        with mock.patch("lazypicker.runtime.terminal.tty.setraw"), mock.patch(
            "lazypicker.runtime.terminal.os.write"
        ), mock.patch("lazypicker.runtime.terminal.termios.tcsetattr"):
            controller.enable_tui_mode()
            with self.assertRaises(OSError):
                with controller.released():
                    raise OSError("spawn failed")

        self.assertTrue(controller.active)

    def test_disable_is_idempotent(self) -> None:
        controller = _controller()

        with mock.patch("lazypicker.runtime.terminal.os.write") as write_mock, mock.patch(
            "lazypicker.runtime.terminal.termios.tcsetattr"
        ) as setattr_mock:
            controller.disable_tui_mode()

        write_mock.assert_not_called()
        setattr_mock.assert_not_called()

    def test_missing_tty_raises_terminal_error(self) -> None:
        with mock.patch(
            "lazypicker.runtime.terminal.termios.tcgetattr",
            side_effect=termios.error(25, "Inappropriate ioctl for device"),
        ):
            with self.assertRaises(TerminalError):
                TerminalController(stdin_fd=0, stdout_fd=1)

    def test_write_failure_raises_terminal_error(self) -> None:
        controller = _controller()

        with mock.patch("lazypicker.runtime.terminal.os.write", side_effect=BrokenPipeError()):
            with self.assertRaises(TerminalError):
                controller.write(b"x")


if __name__ == "__main__":
    unittest.main()
