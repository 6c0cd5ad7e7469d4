"""
tests/test_elasticity.py

Pytest unit tests for elasticity.simulator.
"""

from __future__ import annotations

import pytest

from elasticity.simulator import (
    DEFAULT_ELASTICITY,
    PRICE_CHANGE_SWEEP,
    SimulationPoint,
    current_metrics,
    elasticity_for,
    optimal_price_change,
    revenue_change,
    simulate,
)
from sales.normalizer import SalesRecord


def _record(category: str, quantity: float, unit_price: float) -> SalesRecord:
    return SalesRecord(
        id=f"{category}-{quantity}",
        product="p",
        category=category,
        quantity=quantity,
        unit_price=unit_price,
        region="Texas",
        date="2023-01-01",
        customer_type="Regular",
    )


@pytest.fixture()
def records() -> list[SalesRecord]:
    return [
        _record("Electronics", 100, 10.0),
        _record("Apparel", 50, 40.0),
        _record("Garden", 10, 5.0),
    ]


class TestSimulate:
    def test_one_point_per_candidate(self, records: list[SalesRecord]) -> None:
        points = simulate(records)
        assert len(points) == len(PRICE_CHANGE_SWEEP)
        assert [p.price_change for p in points] == list(PRICE_CHANGE_SWEEP)

    def test_zero_change_reproduces_current_totals(self, records: list[SalesRecord]) -> None:
        points = simulate(records)
        baseline = next(p for p in points if p.price_change == 0)
        metrics = current_metrics(records)
        assert baseline.quantity == pytest.approx(metrics.total_units)
        assert baseline.revenue == pytest.approx(metrics.total_revenue)

    def test_per_record_elasticity(self) -> None:
        # Electronics -0.8 at +10%: q = 100 * 0.92, r = 11 * 92
        points = simulate([_record("Electronics", 100, 10.0)], price_changes=[10])
        assert points[0].quantity == pytest.approx(92.0)
        assert points[0].revenue == pytest.approx(1012.0)

    def test_selected_category_coefficient_applies_to_all(self, records: list[SalesRecord]) -> None:
        # Apparel -1.5 at -20%: every quantity grows by 30%.
        points = simulate(records, price_changes=[-20], category="Apparel")
        assert points[0].quantity == pytest.approx(160 * 1.3)

    def test_unknown_category_uses_default(self) -> None:
        assert elasticity_for("Garden") == DEFAULT_ELASTICITY
        assert elasticity_for(None) == DEFAULT_ELASTICITY
        assert elasticity_for("Audio") == -1.2

    def test_empty_records(self) -> None:
        points = simulate([])
        assert all(p.revenue == 0 for p in points)


class TestOptimalPriceChange:
    def test_argmax(self) -> None:
        points = [
            SimulationPoint(price_change=-5, quantity=1, revenue=10),
            SimulationPoint(price_change=0, quantity=1, revenue=30),
            SimulationPoint(price_change=5, quantity=1, revenue=20),
        ]
        assert optimal_price_change(points) == 0

    def test_ties_keep_first_candidate(self) -> None:
        points = [
            SimulationPoint(price_change=-10, quantity=1, revenue=50),
            SimulationPoint(price_change=10, quantity=1, revenue=50),
        ]
        assert optimal_price_change(points) == -10

    def test_empty_simulation(self) -> None:
        assert optimal_price_change([]) == 0

    def test_inelastic_demand_prefers_price_increase(self) -> None:
        points = simulate([_record("Electronics", 100, 10.0)])
        assert optimal_price_change(points) > 0


class TestRevenueChange:
    def test_relative_to_zero_point(self, records: list[SalesRecord]) -> None:
        points = simulate(records)
        base = next(p for p in points if p.price_change == 0).revenue
        change = revenue_change(points, base * 1.1)
        assert change.absolute == pytest.approx(base * 0.1)
        assert change.percent == pytest.approx(10.0)

    def test_zero_base_has_no_percent(self) -> None:
        change = revenue_change(simulate([]), 100.0)
        assert change.absolute == pytest.approx(100.0)
        assert change.percent is None

    def test_current_metrics_without_units(self) -> None:
        metrics = current_metrics([])
        assert metrics.average_price is None
        assert metrics.total_revenue == 0
