"""Tests for picker frame geometry and composition."""

from __future__ import annotations

import os
import unittest
from unittest import mock

from lazypicker.ansi import display_width, strip_ansi
from lazypicker.errors import TerminalError
from lazypicker.preview.layout import Layout
from lazypicker.render import (
    Rect,
    RenderContext,
    build_frame,
    chrome_rows,
    frame_geometry,
    render_frame,
)
from lazypicker.runtime.terminal import TerminalController


def _context(**overrides) -> RenderContext:
    values = dict(
        width=40,
        height=8,
        prompt="> ",
        query="ap",
        cursor=2,
        items=[("apple", False), ("grape", True)],
        highlighted_row=0,
        match_count=2,
        total_count=3,
        color=False,
    )
    values.update(overrides)
    return RenderContext(**values)


class FrameGeometryTests(unittest.TestCase):
    def test_hidden_preview_uses_whole_screen(self) -> None:
        geometry = frame_geometry(100, 30, (Layout(),), preview_visible=False)
        self.assertEqual(geometry.list_rect, Rect(0, 0, 100, 30))
        self.assertIsNone(geometry.preview_rect)

    def test_right_layout_reserves_divider_column(self) -> None:
        geometry = frame_geometry(100, 30, (Layout(),), preview_visible=True)

        self.assertEqual(geometry.list_rect, Rect(0, 0, 49, 30))
        self.assertEqual(geometry.preview_rect, Rect(50, 0, 50, 30))
        self.assertEqual(geometry.results_height(chrome_rows("", "")), 28)

    def test_bottom_fallback_when_too_narrow(self) -> None:
        layouts = (Layout("right", 50, 40), Layout("bottom", 50, 5))

        geometry = frame_geometry(60, 30, layouts, preview_visible=True)

        self.assertEqual(geometry.preview_side, "bottom")
        self.assertEqual(geometry.list_rect, Rect(0, 0, 60, 14))
        self.assertEqual(geometry.preview_rect, Rect(0, 15, 60, 15))

    def test_chrome_counts_header_and_footer_lines(self) -> None:
        self.assertEqual(chrome_rows("one\ntwo", "three"), 5)


class BuildFrameTests(unittest.TestCase):
    def test_frame_has_exact_size(self) -> None:
        rows = build_frame(_context())

        self.assertEqual(len(rows), 8)
        self.assertTrue(all(display_width(row) == 40 for row in rows))

    def test_prompt_counts_and_marks(self) -> None:
        rows = [row.rstrip() for row in build_frame(_context(selected_count=1))]

        self.assertEqual(rows[0], "> ap_")
        self.assertEqual(rows[1], "  2/3 (1)")
        self.assertEqual(rows[2], ">  apple")
        self.assertEqual(rows[3], " * grape")
        self.assertEqual(rows[4:], ["", "", "", ""])

    def test_cursor_inside_query_shows_character_under_it(self) -> None:
        rows = build_frame(_context(query="apple", cursor=1))
        self.assertEqual(rows[0].rstrip(), "> apple")

    def test_spinner_runs_while_matching(self) -> None:
        rows = build_frame(_context(running=True, spinner_frame=1))
        self.assertTrue(rows[1].startswith("/ 2/3"))

    def test_status_message_is_right_aligned(self) -> None:
        rows = build_frame(_context(status_message="bad query"))
        self.assertTrue(rows[1].endswith("bad query"))

    def test_header_and_footer_frame_results(self) -> None:
        rows = [row.rstrip() for row in build_frame(_context(header="HEAD", footer="FOOT"))]

        self.assertEqual(rows[2], "HEAD")
        self.assertEqual(rows[3], ">  apple")
        self.assertEqual(rows[-1], "FOOT")

    def test_overlay_replaces_results(self) -> None:
        rows = [row.rstrip() for row in build_frame(_context(overlay_text="notes\nmore"))]

        self.assertEqual(rows[2:4], ["notes", "more"])
        self.assertNotIn(">  apple", rows)

    def test_wrapped_results_continue_on_following_rows(self) -> None:
        items = [("abcdefghijklmnop", False)]
        clipped = [row.rstrip() for row in build_frame(_context(width=10, items=items))]
        wrapped = [row.rstrip() for row in build_frame(_context(width=10, items=items, results_wrap=True))]

        self.assertEqual(clipped[2:4], [">  abcdefg", ""])
        self.assertEqual(wrapped[2:5], [">  abcdefg", "   hijklmn", "   op"])

    def test_preview_pane_beside_results(self) -> None:
        context = _context(
            width=41,
            layouts=(Layout("right", 50, 10),),
            preview_visible=True,
            preview_title="cat",
            preview_lines=("line1", "line2", "line3"),
            preview_offset=1,
        )

        rows = build_frame(context)

        self.assertEqual(rows[0], "> ap_".ljust(19) + "│" + "cat".ljust(21))
        self.assertEqual(rows[1][20:].rstrip(), "line2")
        self.assertEqual(rows[2][20:].rstrip(), "line3")
        self.assertTrue(all(display_width(row) == 41 for row in rows))

    def test_preview_error_and_loading_marker(self) -> None:
        context = _context(
            width=41,
            layouts=(Layout("right", 50, 10),),
            preview_visible=True,
            preview_title="cat",
            preview_error="preview exited with status 1",
            preview_loading=True,
        )

        rows = build_frame(context)

        self.assertEqual(rows[0][20:].rstrip(), "cat ...")
        self.assertTrue(rows[1][20:].startswith("preview exited"))

    def test_color_mode_highlights_current_row(self) -> None:
        rows = build_frame(_context(color=True))

        self.assertIn("\033[7m", rows[2])
        self.assertEqual(strip_ansi(rows[2]).rstrip(), ">  apple")

    def test_no_color_strips_record_escapes(self) -> None:
        rows = build_frame(_context(items=[("\033[31mred\033[0m", False)]))
        self.assertEqual(rows[2].rstrip(), ">  red")


class RenderFrameTests(unittest.TestCase):
    def test_full_redraw_clears_screen_first(self) -> None:
        read_fd, write_fd = os.pipe()
        self.addCleanup(os.close, read_fd)
        self.addCleanup(os.close, write_fd)

        render_frame(_context(height=4), lambda data: os.write(write_fd, data), full=True)
        output = os.read(read_fd, 65536).decode("utf-8")

        self.assertTrue(output.startswith("\033[H\033[2J"))
        self.assertEqual(output.count("\r\n"), 3)
        self.assertIn("> ap_", output)

    def test_incremental_redraw_only_homes_cursor(self) -> None:
        read_fd, write_fd = os.pipe()
        self.addCleanup(os.close, read_fd)
        self.addCleanup(os.close, write_fd)

        render_frame(_context(height=4), lambda data: os.write(write_fd, data))
        output = os.read(read_fd, 65536).decode("utf-8")

        self.assertTrue(output.startswith("\033[H"))
        self.assertNotIn("\033[2J", output)

    def test_write_failure_surfaces_as_terminal_error(self) -> None:
        read_fd, write_fd = os.pipe()
        os.close(read_fd)
        os.close(write_fd)
        with mock.patch("lazypicker.runtime.terminal.termios.tcgetattr", return_value=[0]):
            terminal = TerminalController(stdin_fd=write_fd, stdout_fd=write_fd)

        with self.assertRaises(TerminalError):
            render_frame(_context(height=4), terminal.write)


if __name__ == "__main__":
    unittest.main()
