"""Tests for ANSI-aware width, clipping, and wrapping."""

from __future__ import annotations

import unittest

from lazypicker.ansi import clip_ansi_line, display_width, pad_ansi_line, strip_ansi, wrap_ansi_line

RED = "\033[31m"
RESET = "\033[0m"


class AnsiWidthTests(unittest.TestCase):
    def test_escapes_have_no_width(self) -> None:
        self.assertEqual(display_width(f"{RED}abc{RESET}"), 3)

    def test_wide_and_combining_characters(self) -> None:
        self.assertEqual(display_width("日本"), 4)
        self.assertEqual(display_width("é"), 1)

    def test_tab_advances_to_next_stop(self) -> None:
        self.assertEqual(display_width("ab\tc"), 9)

    def test_clip_keeps_escapes_and_drops_overflow(self) -> None:
        self.assertEqual(clip_ansi_line(f"{RED}abcdef{RESET}", 3), f"{RED}abc")

    def test_clip_does_not_split_wide_character(self) -> None:
        self.assertEqual(clip_ansi_line("日本", 3), "日")

    def test_wrap_splits_by_columns(self) -> None:
        self.assertEqual(wrap_ansi_line("abcdefg", 3), ["abc", "def", "g"])
        self.assertEqual(wrap_ansi_line("", 3), [""])

    def test_pad_resets_styles_before_padding(self) -> None:
        self.assertEqual(pad_ansi_line(f"{RED}ab", 4), f"{RED}ab{RESET}  ")
        self.assertEqual(pad_ansi_line("abcdef", 4), "abcd")

    def test_strip_removes_sgr_sequences(self) -> None:
        self.assertEqual(strip_ansi(f"{RED}x{RESET}y"), "xy")


if __name__ == "__main__":
    unittest.main()
