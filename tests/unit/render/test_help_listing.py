"""Tests for the binding help listing."""

from __future__ import annotations

import unittest

from lazypicker.ansi import strip_ansi
from lazypicker.dispatch.bindings import BindingTable, default_bindings
from lazypicker.render.help import help_lines, help_text


def _table() -> BindingTable:
    return BindingTable.from_mapping(
        {
            "enter": "Accept",
            "ctrl-c": "Quit(1)",
            "tab": ["Toggle", "Down(1)"],
            "leftclick": "Accept",
            "start": "SetHeader(hi)",
        }
    )


class HelpListingTests(unittest.TestCase):
    def test_listing_groups_triggers_by_kind(self) -> None:
        self.assertEqual(
            help_text(_table()),
            "[keys]\n"
            "ctrl-c = Quit(1)\n"
            "enter  = Accept\n"
            "tab    = Toggle + Down(1)\n"
            "\n"
            "[mouse]\n"
            "leftclick = Accept\n"
            "\n"
            "[events]\n"
            "start = SetHeader(hi)\n",
        )

    def test_empty_sections_are_omitted(self) -> None:
        text = help_text(BindingTable.from_mapping({"enter": "Accept"}))
        self.assertEqual(text, "[keys]\nenter = Accept\n")

    def test_plain_lines_without_color(self) -> None:
        lines = help_lines(_table(), color=False)

        self.assertEqual(lines[0], "[keys]")
        self.assertFalse(any("\x1b" in line for line in lines))

    def test_colored_lines_keep_same_text(self) -> None:
        plain = help_lines(_table(), color=False)
        colored = help_lines(_table(), color=True)

        self.assertTrue(any("\x1b[" in line for line in colored))
        self.assertEqual([strip_ansi(line) for line in colored], plain)

    def test_default_table_lists_accept(self) -> None:
        self.assertIn("enter", help_text(default_bindings()))


if __name__ == "__main__":
    unittest.main()
