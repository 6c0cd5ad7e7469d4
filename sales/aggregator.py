"""
sales/aggregator.py

Group-by aggregation over canonical sales records.

Every function is pure: buckets are rebuilt from the full record list on each
call and nothing is cached or persisted. Output order is the first-seen order
of keys unless a function documents otherwise (``sort_desc=True`` for
"top N" views, ascending period keys for time series, calendar order for
month views).

Mean aggregation never reports an empty bucket as zero. A bucket whose values
were all missing (``None``/NaN) carries ``value=None`` and an ``error``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Final

from sales.normalizer import SalesRecord, parse_iso_date
from sales.periods import GRANULARITIES, MONTH_ABBREVIATIONS, MONTH_NAMES, period_key

logger = logging.getLogger(__name__)

SUM: Final[str] = "sum"
MEAN: Final[str] = "mean"
ALL: Final[str] = "all"

_VALID_HOW: Final[frozenset[str]] = frozenset({SUM, MEAN})

KeyFn = Callable[[SalesRecord], Any]
ValueFn = Callable[[SalesRecord], Any]


@dataclass(frozen=True)
class AggregateBucket:
    """
    One aggregated group.

    ``value`` is ``None`` when the aggregate cannot be computed; ``error``
    then holds the reason.
    """

    key: str
    value: float | None
    count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class TrendSummary:
    direction: str
    percentage: float | None


@dataclass(frozen=True)
class CategoryPerformance:
    name: str
    sales: float
    margin: float | None


@dataclass(frozen=True)
class SummaryStats:
    total_products: int
    total_categories: int
    total_records: int
    average_margin: float | None
    total_revenue: float


@dataclass
class _Accumulator:
    total: float = 0.0
    count: int = 0


def total_sales_of(record: SalesRecord) -> float:
    return record.total_sales


def _usable(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def aggregate(
    records: Iterable[SalesRecord],
    key: KeyFn,
    value: ValueFn | None = None,
    *,
    how: str = SUM,
    sort_desc: bool = False,
    skip_empty_keys: bool = False,
) -> list[AggregateBucket]:
    """
    Group *records* by ``key(record)`` and sum or average ``value(record)``.

    Parameters
    ----------
    records:
        Canonical records; consumed once.
    key:
        Dimension extractor, e.g. ``lambda r: r.category``.
    value:
        Numeric extractor. Defaults to ``total_sales``.
    how:
        ``"sum"`` or ``"mean"``.
    sort_desc:
        Sort buckets by value, largest first. Buckets without a value go last.
    skip_empty_keys:
        Drop records whose key is empty instead of bucketing them under ``""``.

    Raises
    ------
    ValueError
        When *how* is not a supported aggregation.
    """
    if how not in _VALID_HOW:
        raise ValueError(f"Unknown aggregation {how!r}. Valid: {sorted(_VALID_HOW)}")
    extract = value or total_sales_of

    groups: dict[str, _Accumulator] = {}
    for record in records:
        raw_key = key(record)
        bucket_key = "" if raw_key is None else str(raw_key)
        if skip_empty_keys and not bucket_key:
            continue
        acc = groups.setdefault(bucket_key, _Accumulator())
        number = _usable(extract(record))
        if number is None:
            continue
        acc.total += number
        acc.count += 1

    buckets = [_finish(bucket_key, acc, how) for bucket_key, acc in groups.items()]
    if sort_desc:
        buckets = sort_buckets_desc(buckets)
    logger.debug("aggregate how=%s produced %d buckets", how, len(buckets))
    return buckets


def _finish(bucket_key: str, acc: _Accumulator, how: str) -> AggregateBucket:
    if how == SUM:
        return AggregateBucket(key=bucket_key, value=acc.total, count=acc.count)
    if acc.count == 0:
        return AggregateBucket(
            key=bucket_key,
            value=None,
            count=0,
            error="Cannot average an empty group (zero counted values).",
        )
    return AggregateBucket(key=bucket_key, value=acc.total / acc.count, count=acc.count)


def sort_buckets_desc(buckets: Sequence[AggregateBucket]) -> list[AggregateBucket]:
    """Stable sort by value, largest first; valueless buckets keep their order at the end."""
    return sorted(
        buckets,
        key=lambda bucket: (bucket.value is None, -(bucket.value or 0.0)),
    )


def grand_total(buckets: Iterable[AggregateBucket]) -> float:
    return sum(bucket.value for bucket in buckets if bucket.value is not None)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def filter_records(
    records: Iterable[SalesRecord],
    *,
    category: str = ALL,
    region: str = ALL,
    customer_type: str = ALL,
) -> list[SalesRecord]:
    """Keep records matching every selected dimension; ``"all"`` disables a filter."""
    return [
        record
        for record in records
        if (category == ALL or record.category == category)
        and (region == ALL or record.region == region)
        and (customer_type == ALL or record.customer_type == customer_type)
    ]


def distinct_values(records: Iterable[SalesRecord], field: str) -> list[str]:
    """Non-empty values of *field* in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        text = getattr(record, field)
        if text:
            seen.setdefault(str(text), None)
    return list(seen)


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


def aggregate_by_period(
    records: Iterable[SalesRecord],
    granularity: str,
    value: ValueFn | None = None,
) -> list[AggregateBucket]:
    """
    Sum *value* per calendar bucket, ordered by ascending period key.

    Records without a parseable date are skipped.

    Raises
    ------
    ValueError
        When *granularity* is unknown.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Unknown granularity {granularity!r}. Valid: {list(GRANULARITIES)}"
        )

    def bucket_of(record: SalesRecord) -> str:
        return period_key(parse_iso_date(record.date), granularity)  # type: ignore[arg-type]

    dated = [record for record in records if parse_iso_date(record.date) is not None]
    buckets = aggregate(dated, key=bucket_of, value=value)
    return sorted(buckets, key=lambda bucket: bucket.key)


def trend_summary(points: Sequence[AggregateBucket]) -> TrendSummary:
    """
    Compare the first and last period of a time series.

    Fewer than two points yields a neutral trend. A zero first period has no
    defined percentage change; the direction still follows the sign.
    """
    if len(points) < 2:
        return TrendSummary(direction="neutral", percentage=0.0)

    first = points[0].value or 0.0
    last = points[-1].value or 0.0
    delta = last - first
    direction = "up" if delta > 0 else "down" if delta < 0 else "neutral"
    if first == 0:
        return TrendSummary(direction=direction, percentage=None)
    return TrendSummary(direction=direction, percentage=abs(delta / first * 100.0))


# ---------------------------------------------------------------------------
# Month views
# ---------------------------------------------------------------------------


def _month_index(record: SalesRecord) -> int | None:
    day = parse_iso_date(record.date)
    return None if day is None else day.month - 1


def seasonality(records: Iterable[SalesRecord]) -> list[AggregateBucket]:
    """Total sales for each calendar month January..December, zero-filled."""
    totals = [0.0] * 12
    counts = [0] * 12
    for record in records:
        index = _month_index(record)
        if index is None:
            continue
        totals[index] += record.total_sales
        counts[index] += 1
    return [
        AggregateBucket(key=name, value=totals[i], count=counts[i])
        for i, name in enumerate(MONTH_NAMES)
    ]


def region_heatmap(records: Sequence[SalesRecord]) -> list[dict[str, Any]]:
    """
    Month x region grid of total sales.

    Every (month, region) pair for regions present in *records* is emitted,
    months outermost, regions in first-seen order.
    """
    regions = distinct_values(records, "region")
    cells: dict[tuple[str, str], float] = {
        (month, region): 0.0 for month in MONTH_NAMES for region in regions
    }
    for record in records:
        index = _month_index(record)
        if index is None or not record.region:
            continue
        cells[(MONTH_NAMES[index], record.region)] += record.total_sales
    return [
        {"month": month, "region": region, "sales": sales}
        for (month, region), sales in cells.items()
    ]


def monthly_revenue_profit(records: Sequence[SalesRecord]) -> dict[str, list[AggregateBucket]]:
    """
    Revenue and profit per calendar month (``Jan``..``Dec``), as two series.

    Profit is ``revenue * margin / 100``. Only months with records appear,
    in calendar order.
    """

    def month_label(record: SalesRecord) -> str:
        index = _month_index(record)
        return "Unknown" if index is None else MONTH_ABBREVIATIONS[index]

    def calendar_order(buckets: list[AggregateBucket]) -> list[AggregateBucket]:
        order = {label: i for i, label in enumerate(MONTH_ABBREVIATIONS)}
        return sorted(buckets, key=lambda bucket: order.get(bucket.key, len(order)))

    revenue = aggregate(records, key=month_label)
    profit = aggregate(
        records,
        key=month_label,
        value=lambda record: record.total_sales * record.margin / 100.0,
    )
    return {"revenue": calendar_order(revenue), "profit": calendar_order(profit)}


# ---------------------------------------------------------------------------
# Dashboard summaries
# ---------------------------------------------------------------------------


def category_performance(records: Sequence[SalesRecord]) -> list[CategoryPerformance]:
    """Total sales and mean margin per category, first-seen order."""

    def category_of(record: SalesRecord) -> str:
        return record.category or "Uncategorized"

    sales = aggregate(records, key=category_of)
    margins = {
        bucket.key: bucket.value
        for bucket in aggregate(
            records, key=category_of, value=lambda record: record.margin, how=MEAN
        )
    }
    return [
        CategoryPerformance(name=bucket.key, sales=bucket.value or 0.0, margin=margins.get(bucket.key))
        for bucket in sales
    ]


def summary_stats(records: Sequence[SalesRecord]) -> SummaryStats:
    """Headline numbers for the analytics overview cards."""
    if not records:
        return SummaryStats(
            total_products=0,
            total_categories=0,
            total_records=0,
            average_margin=None,
            total_revenue=0.0,
        )
    return SummaryStats(
        total_products=len({record.sku or record.id for record in records}),
        total_categories=len({record.category for record in records}),
        total_records=len(records),
        average_margin=sum(record.margin for record in records) / len(records),
        total_revenue=sum(record.total_sales for record in records),
    )
