"""Tests for preview layout parsing and selection."""

from __future__ import annotations

import unittest

from lazypicker.errors import ConfigError
from lazypicker.preview.layout import Layout, PreviewGeometry, choose_layout, parse_layout


class ParseLayoutTests(unittest.TestCase):
    def test_all_fields(self) -> None:
        self.assertEqual(parse_layout("left:30:10:40"), Layout("left", 30, 10, 40))

    def test_side_only_keeps_defaults(self) -> None:
        self.assertEqual(parse_layout("bottom"), Layout("bottom", 50, 20, 0))

    def test_percent_sign_is_accepted(self) -> None:
        self.assertEqual(parse_layout("top:40%").percentage, 40)

    def test_invalid_values_raise(self) -> None:
        for text in ("middle", "right:0", "right:120", "right:50:30:10", "right:abc"):
            with self.subTest(text=text):
                with self.assertRaises(ConfigError):
                    parse_layout(text)


class ChooseLayoutTests(unittest.TestCase):
    def test_first_fitting_layout_wins(self) -> None:
        geometry = choose_layout([Layout("right", 50, 20), Layout("bottom", 50, 5)], 100, 30)
        self.assertEqual(geometry, PreviewGeometry(Layout("right", 50, 20), 50))

    def test_falls_back_when_screen_is_too_narrow(self) -> None:
        geometry = choose_layout([Layout("right", 50, 20), Layout("bottom", 50, 5)], 30, 20)
        self.assertEqual(geometry, PreviewGeometry(Layout("bottom", 50, 5), 10))

    def test_max_bound_rejects_oversized_preview(self) -> None:
        self.assertIsNone(choose_layout([Layout("right", 50, 10, 30)], 100, 30))

    def test_no_fit_returns_none(self) -> None:
        self.assertIsNone(choose_layout([Layout("right", 50, 20)], 20, 10))


if __name__ == "__main__":
    unittest.main()
