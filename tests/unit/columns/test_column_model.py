"""Tests for record splitting and placeholder templates."""

from __future__ import annotations

import unittest

from lazypicker.columns import (
    SplitRule,
    TemplateContext,
    build_splitter,
    format_template,
    validate_template,
)
from lazypicker.errors import ConfigError


class ColumnSplitterTests(unittest.TestCase):
    def test_no_split_keeps_whole_line_as_single_column(self) -> None:
        splitter = build_splitter(SplitRule())

        self.assertEqual(splitter.count, 1)
        self.assertEqual(splitter.split("a\tb c"), ("a\tb c",))

    def test_delimiter_pads_missing_columns_and_keeps_remainder_in_last(self) -> None:
        splitter = build_splitter(SplitRule.delimiter(r"\t", max_columns=3))

        self.assertEqual(splitter.split("a\tb"), ("a", "b", ""))
        self.assertEqual(splitter.split("a\tb\tc\td"), ("a", "b", "c\td"))

    def test_regex_rule_takes_first_match_per_column(self) -> None:
        splitter = build_splitter(SplitRule.regexes([r"\d+", r"[a-z]+"], names=["num", "word"]))

        self.assertEqual(splitter.names, ("num", "word"))
        self.assertEqual(splitter.split("x 42 y"), ("42", "x"))
        self.assertEqual(splitter.split("!!"), ("", ""))

    def test_column_index_prefers_names_then_digits(self) -> None:
        splitter = build_splitter(SplitRule.delimiter(",", names=["path", "0"]))

        self.assertEqual(splitter.column_index("path"), 0)
        self.assertEqual(splitter.column_index("0"), 1)
        self.assertEqual(splitter.column_index("1"), 1)
        self.assertIsNone(splitter.column_index("7"))

    def test_invalid_regex_and_duplicate_names_raise_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            build_splitter(SplitRule.delimiter("("))
        with self.assertRaises(ConfigError):
            build_splitter(SplitRule.delimiter(",", names=["a", "a"]))
        with self.assertRaises(ConfigError):
            build_splitter(SplitRule.delimiter(",", max_columns=99))


class TemplateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.splitter = build_splitter(SplitRule.delimiter(r"\t", names=["name", "size"]))

    def _context(self, **overrides) -> TemplateContext:
        values = dict(
            splitter=self.splitter,
            current=("a b\t10", ("a b", "10")),
            selected=(),
            active_column=1,
            query="qu'ery",
        )
        values.update(overrides)
        return TemplateContext(**values)

    def test_raw_substitution_of_line_columns_and_query(self) -> None:
        out = format_template("{} | {name} | {1} | {!} | {q}", self._context())

        self.assertEqual(out, "a b\t10 | a b | 10 | 10 | qu'ery")

    def test_quoted_substitution_shell_quotes_each_value(self) -> None:
        out = format_template("cat {name} {..}", self._context(), quote=True)

        self.assertEqual(out, "cat 'a b' 'a b' 10")

    def test_selection_placeholder_falls_back_to_highlighted_record(self) -> None:
        self.assertEqual(format_template("{+}", self._context()), "a b\t10")

        selected = (("x\t1", ("x", "1")), ("y\t2", ("y", "2")))
        self.assertEqual(format_template("{+}", self._context(selected=selected)), "x\t1 y\t2")

    def test_empty_highlight_and_selection_resolve_to_empty_strings(self) -> None:
        out = format_template("[{}][{+}][{name}]", self._context(current=None))

        self.assertEqual(out, "[][][]")

    def test_escapes_and_unterminated_placeholder_are_literal(self) -> None:
        self.assertEqual(format_template(r"\{} {q", self._context()), "{} {q")

    def test_validate_rejects_unknown_placeholders(self) -> None:
        validate_template("{name} {1} {q} {+} {..} {!} {}", self.splitter)
        with self.assertRaises(ConfigError):
            validate_template("{nope}", self.splitter)


if __name__ == "__main__":
    unittest.main()
