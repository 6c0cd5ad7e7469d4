from __future__ import annotations

import unittest

from charts.adapter import merge_series, to_chart_rows, to_frame
from sales.aggregator import AggregateBucket


class TestChartAdapter(unittest.TestCase):
    def test_chart_rows_preserve_order(self) -> None:
        buckets = [AggregateBucket("b", 2.0), AggregateBucket("a", 1.0)]

        rows = to_chart_rows(buckets)

        self.assertEqual(rows, [{"name": "b", "value": 2.0}, {"name": "a", "value": 1.0}])

    def test_chart_rows_custom_fields(self) -> None:
        rows = to_chart_rows([AggregateBucket("Jan", 5.0)], key_field="month", value_field="revenue")

        self.assertEqual(rows, [{"month": "Jan", "revenue": 5.0}])

    def test_merge_zero_fills_missing_periods(self) -> None:
        rows = merge_series(
            {
                "revenue": {"2023-01": 10.0, "2023-02": 20.0},
                "profit": [("2023-02", 4.0), ("2023-03", 6.0)],
            }
        )

        self.assertEqual([row["period"] for row in rows], ["2023-01", "2023-02", "2023-03"])
        self.assertEqual(rows[0], {"period": "2023-01", "revenue": 10.0, "profit": 0.0})
        self.assertEqual(rows[2], {"period": "2023-03", "profit": 6.0, "revenue": 0.0})

    def test_merge_without_fill_leaves_fields_absent(self) -> None:
        rows = merge_series(
            {"revenue": {"2023-01": 10.0}, "profit": {"2023-02": 1.0}},
            fill_missing=False,
        )

        self.assertNotIn("profit", rows[0])
        self.assertNotIn("revenue", rows[1])

    def test_merge_accepts_bucket_lists(self) -> None:
        rows = merge_series({"sales": [AggregateBucket("Q1", 3.0)]}, key_field="quarter")

        self.assertEqual(rows, [{"quarter": "Q1", "sales": 3.0}])

    def test_to_frame_sets_index(self) -> None:
        frame = to_frame([{"name": "a", "value": 1.0}, {"name": "b", "value": 2.0}], index="name")

        self.assertEqual(list(frame.index), ["a", "b"])
        self.assertEqual(list(frame["value"]), [1.0, 2.0])

    def test_to_frame_accepts_dataclasses(self) -> None:
        frame = to_frame([AggregateBucket("a", 1.0, count=2)])

        self.assertEqual(list(frame.columns), ["key", "value", "count", "error"])

    def test_to_frame_empty(self) -> None:
        self.assertTrue(to_frame([], index="name").empty)
