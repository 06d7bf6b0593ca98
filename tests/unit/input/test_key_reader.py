"""Tests for raw terminal byte decoding into triggers."""

from __future__ import annotations

import os
import unittest

from lazypicker.dispatch.bindings import default_bindings
from lazypicker.dispatch.triggers import UNKNOWN_KEY, key, parse_trigger
from lazypicker.errors import TerminalError
from lazypicker.input import KeyReader


class KeyReaderTests(unittest.TestCase):
    def setUp(self) -> None:
        read_fd, write_fd = os.pipe()
        self.addCleanup(os.close, read_fd)
        self.addCleanup(os.close, write_fd)
        self.write_fd = write_fd
        self.reader = KeyReader(read_fd)

    def _events(self, data: bytes, count: int = 1) -> list:
        os.write(self.write_fd, data)
        return [self.reader.read_event(200) for _ in range(count)]

    def _trigger(self, data: bytes):
        (event,) = self._events(data)
        return event.trigger

    def test_plain_and_control_keys(self) -> None:
        cases = {
            b"a": "a",
            b"Z": "Z",
            b"\x03": "ctrl-c",
            b"\r": "enter",
            b"\t": "tab",
            b"\x7f": "backspace",
            b"\x08": "ctrl-h",
        }
        for data, expected in cases.items():
            with self.subTest(data=data):
                self.assertEqual(self._trigger(data), parse_trigger(expected))

    def test_escape_sequences(self) -> None:
        cases = {
            b"\x1b[A": "up",
            b"\x1b[1;5C": "ctrl-right",
            b"\x1b[1;2A": "shift-up",
            b"\x1b[5~": "pageup",
            b"\x1b[6;2~": "shift-pagedown",
            b"\x1b[Z": "backtab",
            b"\x1bOP": "f1",
            b"\x1b[11~": "f1",
            b"\x1b[14;5~": "ctrl-f4",
            b"\x1bf": "alt-f",
        }
        for data, expected in cases.items():
            with self.subTest(data=data):
                self.assertEqual(self._trigger(data), parse_trigger(expected))

    def test_unrecognized_sequences_are_unbound_unknown_keys(self) -> None:
        bindings = default_bindings()
        for data in (b"\x1b[25~", b"\x1b[E", b"\x1bOx", b"\x1b[~", b"\x1b[<1;2M"):
            with self.subTest(data=data):
                trigger = self._trigger(data)
                self.assertEqual(trigger, key(UNKNOWN_KEY))
                self.assertEqual(bindings.resolve(trigger), ())

    def test_truncated_introducers_read_as_alt_keys(self) -> None:
        self.assertEqual(self._trigger(b"\x1b["), key("[", "alt"))
        self.assertEqual(self._trigger(b"\x1bO"), key("O", "alt"))

    def test_lone_escape_times_out_to_esc(self) -> None:
        self.assertEqual(self._trigger(b"\x1b"), parse_trigger("esc"))

    def test_double_escape_yields_two_esc_events(self) -> None:
        first, second = self._events(b"\x1b\x1b", count=2)
        self.assertEqual(first.trigger, parse_trigger("esc"))
        self.assertEqual(second.trigger, parse_trigger("esc"))

    def test_utf8_character_is_one_key(self) -> None:
        self.assertEqual(self._trigger("é".encode("utf-8")).name, "é")

    def test_sgr_mouse_reports(self) -> None:
        (click,) = self._events(b"\x1b[<0;10;5M")
        self.assertEqual(click.trigger, parse_trigger("leftclick"))
        self.assertEqual((click.col, click.row), (10, 5))

        self.assertEqual(self._trigger(b"\x1b[<64;3;4M"), parse_trigger("scrollup"))
        self.assertEqual(self._trigger(b"\x1b[<69;3;4M"), parse_trigger("shift+scrolldown"))
        self.assertEqual(self._trigger(b"\x1b[<2;1;1M"), parse_trigger("rightclick"))
        self.assertEqual(self._trigger(b"\x1b[<0;1;1m").name, "release")

    def test_timeout_returns_none(self) -> None:
        self.assertIsNone(self.reader.read_event(10))

    def test_has_pending_tracks_unread_input(self) -> None:
        os.write(self.write_fd, b"ab")

        self.reader.read_event(200)
        self.assertTrue(self.reader.has_pending())
        self.reader.read_event(200)
        self.assertFalse(self.reader.has_pending())


class KeyReaderFailureTests(unittest.TestCase):
    def test_end_of_input_raises_terminal_error(self) -> None:
        read_fd, write_fd = os.pipe()
        self.addCleanup(os.close, read_fd)
        os.close(write_fd)
        reader = KeyReader(read_fd)

        with self.assertRaises(TerminalError):
            reader.read_event(200)

    def test_closed_descriptor_raises_terminal_error(self) -> None:
        read_fd, write_fd = os.pipe()
        os.close(read_fd)
        os.close(write_fd)
        reader = KeyReader(read_fd)

        with self.assertRaises(TerminalError):
            reader.read_event(10)
        with self.assertRaises(TerminalError):
            reader.has_pending()


if __name__ == "__main__":
    unittest.main()
