"""Tests for ranking records without the interactive picker."""

from __future__ import annotations

import unittest

from lazypicker.columns import SplitRule, build_splitter
from lazypicker.errors import PatternError
from lazypicker.matching import filter_matches


class FilterMatchesTests(unittest.TestCase):
    def test_returns_matching_records_best_first(self) -> None:
        records = filter_matches(["apple", "banana", "grape"], "ap")

        self.assertEqual([record.text for record in records], ["apple", "grape"])
        self.assertEqual([record.index for record in records], [0, 2])

    def test_empty_query_keeps_input_order(self) -> None:
        records = filter_matches(["b", "a", "c"], "")

        self.assertEqual([record.text for record in records], ["b", "a", "c"])

    def test_no_match_and_no_input_give_nothing(self) -> None:
        self.assertEqual(filter_matches(["apple"], "zzz"), [])
        self.assertEqual(filter_matches([], "a"), [])

    def test_active_column_limits_matching(self) -> None:
        splitter = build_splitter(SplitRule.delimiter("\t", names=("left", "right")))

        records = filter_matches(["x\tfoo", "foo\ty", "z\tfood"], "foo", splitter=splitter, active_column=1)

        self.assertEqual([record.text for record in records], ["x\tfoo", "z\tfood"])
        self.assertEqual(records[0].columns, ("x", "foo"))

    def test_malformed_query_raises(self) -> None:
        with self.assertRaises(PatternError):
            filter_matches(["apple"], "%zz foo")


if __name__ == "__main__":
    unittest.main()
