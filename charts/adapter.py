"""
charts/adapter.py

Reshapes aggregation output into the row-of-dicts / DataFrame shape consumed
by Streamlit charts. Input order is always preserved.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, is_dataclass
from typing import Any

import pandas as pd

from sales.aggregator import AggregateBucket

SeriesInput = Mapping[str, Any] | Sequence[AggregateBucket] | Sequence[tuple[str, float]]


def to_chart_rows(
    buckets: Iterable[AggregateBucket],
    *,
    key_field: str = "name",
    value_field: str = "value",
) -> list[dict[str, Any]]:
    """One ``{key_field: key, value_field: value}`` dict per bucket, in order."""
    return [{key_field: bucket.key, value_field: bucket.value} for bucket in buckets]


def _as_pairs(series: SeriesInput) -> list[tuple[str, Any]]:
    if isinstance(series, Mapping):
        return [(str(key), value) for key, value in series.items()]
    pairs: list[tuple[str, Any]] = []
    for item in series:
        if isinstance(item, AggregateBucket):
            pairs.append((item.key, item.value))
        else:
            key, value = item
            pairs.append((str(key), value))
    return pairs


def merge_series(
    series: Mapping[str, SeriesInput],
    *,
    key_field: str = "period",
    fill_missing: bool = True,
) -> list[dict[str, Any]]:
    """
    Merge independently aggregated series into one row per period key.

    Parameters
    ----------
    series:
        Series name to its ``key -> value`` data (mapping, bucket list or
        pairs). Series names become row fields.
    key_field:
        Field name holding the period key in each row.
    fill_missing:
        When true, a series without data for a period contributes ``0.0`` so
        every row has every field. When false the field is left out.

    Rows follow first-seen key order across the series, in the order the
    series are given.
    """
    rows: dict[str, dict[str, Any]] = {}
    for name, data in series.items():
        for key, value in _as_pairs(data):
            row = rows.setdefault(key, {key_field: key})
            row[name] = value

    if fill_missing:
        for row in rows.values():
            for name in series:
                row.setdefault(name, 0.0)
    return list(rows.values())


def to_frame(rows: Sequence[Mapping[str, Any]] | Sequence[Any], *, index: str | None = None) -> pd.DataFrame:
    """
    Build a DataFrame from chart rows (dicts or dataclasses), keeping row order.

    With *index* set, that column becomes the index so ``st.bar_chart`` /
    ``st.line_chart`` use it as the x axis.
    """
    records = [asdict(row) if is_dataclass(row) else dict(row) for row in rows]
    frame = pd.DataFrame.from_records(records)
    if index is not None and not frame.empty:
        frame = frame.set_index(index)
    return frame
