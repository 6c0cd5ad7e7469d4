"""
elasticity/simulator.py

Price-change what-if simulation using fixed per-category elasticities.

Model (per record, per candidate change ``p`` in percent)::

    quantity_change = elasticity * p / 100
    new_quantity    = quantity * (1 + quantity_change)
    new_revenue     = unit_price * (1 + p / 100) * new_quantity

Summing over records gives one SimulationPoint per candidate. The model
assumes linear demand response and a single elasticity per category. Results
are illustrative, not an econometric estimate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Final

from sales.aggregator import ALL
from sales.normalizer import SalesRecord

logger = logging.getLogger(__name__)

ELASTICITY_BY_CATEGORY: Final[Mapping[str, float]] = {
    "Electronics": -0.8,
    "Audio": -1.2,
    "Wearables": -1.0,
    "Apparel": -1.5,
}
"""More negative means more price-sensitive demand."""

DEFAULT_ELASTICITY: Final[float] = -1.0

PRICE_CHANGE_SWEEP: Final[tuple[int, ...]] = (-20, -15, -10, -5, 0, 5, 10, 15, 20)


@dataclass(frozen=True)
class SimulationPoint:
    price_change: float
    quantity: float
    revenue: float


@dataclass(frozen=True)
class RevenueChange:
    absolute: float
    percent: float | None


@dataclass(frozen=True)
class CurrentMetrics:
    total_units: float
    total_revenue: float
    average_price: float | None


def elasticity_for(
    category: str | None,
    elasticities: Mapping[str, float] = ELASTICITY_BY_CATEGORY,
    default: float = DEFAULT_ELASTICITY,
) -> float:
    if category and category in elasticities:
        return elasticities[category]
    return default


def simulate(
    records: Sequence[SalesRecord],
    *,
    elasticities: Mapping[str, float] = ELASTICITY_BY_CATEGORY,
    default_elasticity: float = DEFAULT_ELASTICITY,
    price_changes: Sequence[float] = PRICE_CHANGE_SWEEP,
    category: str = ALL,
) -> list[SimulationPoint]:
    """
    Project total quantity and revenue for each candidate price change.

    Args:
        records:            Already-filtered canonical records.
        elasticities:       Category name to elasticity coefficient.
        default_elasticity: Coefficient for categories missing from the table.
        price_changes:      Candidate changes in percent, in scan order.
        category:           When not ``"all"``, this category's coefficient is
                            applied to every record.

    Returns:
        One point per entry of *price_changes*, in the same order.
    """
    if category != ALL:
        fixed = elasticity_for(category, elasticities, default_elasticity)
        coefficients = [fixed] * len(records)
    else:
        coefficients = [
            elasticity_for(record.category, elasticities, default_elasticity)
            for record in records
        ]

    points: list[SimulationPoint] = []
    for price_change in price_changes:
        total_quantity = 0.0
        total_revenue = 0.0
        for record, elasticity in zip(records, coefficients):
            quantity_change = elasticity * price_change / 100
            new_quantity = record.quantity * (1 + quantity_change)
            new_revenue = record.unit_price * (1 + price_change / 100) * new_quantity
            total_quantity += new_quantity
            total_revenue += new_revenue
        points.append(
            SimulationPoint(
                price_change=price_change,
                quantity=total_quantity,
                revenue=total_revenue,
            )
        )

    logger.debug(
        "simulate category=%s records=%d points=%d", category, len(records), len(points)
    )
    return points


def optimal_price_change(points: Sequence[SimulationPoint]) -> float:
    """
    Candidate with the highest projected revenue.

    Linear scan with strict greater-than, so ties keep the earliest candidate.
    An empty simulation yields ``0``.
    """
    if not points:
        return 0
    best = points[0]
    for point in points[1:]:
        if point.revenue > best.revenue:
            best = point
    return best.price_change


def revenue_change(points: Sequence[SimulationPoint], revenue: float) -> RevenueChange:
    """Difference between *revenue* and the unchanged-price (``p == 0``) projection."""
    base = next((point.revenue for point in points if point.price_change == 0), 0.0)
    absolute = revenue - base
    percent = None if base == 0 else absolute / base * 100
    return RevenueChange(absolute=absolute, percent=percent)


def current_metrics(records: Sequence[SalesRecord]) -> CurrentMetrics:
    total_units = sum(record.quantity for record in records)
    total_revenue = sum(record.total_sales for record in records)
    average_price = None if total_units == 0 else total_revenue / total_units
    return CurrentMetrics(
        total_units=total_units,
        total_revenue=total_revenue,
        average_price=average_price,
    )
