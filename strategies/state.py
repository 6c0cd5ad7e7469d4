"""
strategies/state.py

In-memory pricing strategy workspace.

State is an immutable ``StrategyState``; every transition is a pure function
returning a new state. Nothing here is persisted. Status changes are not
restricted: the usual flow is proposed -> approved -> implemented, but any
status may be set from any other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from app.schemas.pricing import (
    STRATEGY_STATUSES,
    PricingStrategy,
    PricingStrategyDraft,
    StrategyStatus,
)

logger = logging.getLogger(__name__)


class StrategyValidationError(ValueError):
    """
    Raised when a strategy draft is missing required fields.
    """

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Please fill in all required fields to create a pricing strategy: "
            + ", ".join(missing)
        )
        self.missing = tuple(missing)


class UnknownStrategyError(KeyError):
    """
    Raised when a transition targets a strategy id that does not exist.
    """


_REQUIRED_FIELDS: tuple[str, ...] = ("name", "target_category", "implementation_date")

SEED_STRATEGIES: tuple[PricingStrategy, ...] = (
    PricingStrategy(
        id="strategy-1",
        name="Premium Products Markup",
        description="Increase prices for high-margin products to maximize profitability",
        target_category="Electronics",
        target_region=None,
        price_change=10,
        change_type="percentage",
        expected_impact=15,
        implementation_date="2023-11-01",
        collaborators=("Product Manager", "Sales Director", "Marketing Manager"),
        status="implemented",
    ),
    PricingStrategy(
        id="strategy-2",
        name="Seasonal Sales Promotion",
        description="Temporary discount for seasonal products to boost volume",
        target_category="Apparel",
        target_region="Minnesota",
        price_change=-15,
        change_type="percentage",
        expected_impact=25,
        implementation_date="2023-12-01",
        collaborators=("Marketing Manager", "Regional Manager", "Pricing Analyst"),
        status="approved",
    ),
    PricingStrategy(
        id="strategy-3",
        name="Regional Price Adjustment",
        description="Adjust prices in high-demand regions to optimize margins",
        target_category="Audio",
        target_region="California",
        price_change=5.99,
        change_type="fixed",
        expected_impact=8,
        implementation_date="2024-01-15",
        collaborators=("Regional Sales Manager", "Pricing Analyst"),
        status="proposed",
    ),
)


@dataclass(frozen=True)
class StrategyState:
    strategies: tuple[PricingStrategy, ...] = field(default_factory=tuple)
    selected_category: str = "all"
    selected_region: str = "all"


def initial_state() -> StrategyState:
    return StrategyState(strategies=SEED_STRATEGIES)


def create_strategy(state: StrategyState, draft: PricingStrategyDraft) -> StrategyState:
    """
    Append *draft* as a new strategy with id ``strategy-{n+1}``.

    Raises:
        StrategyValidationError: name, target category or implementation
            date is blank. *state* is left untouched.
    """
    missing = [name for name in _REQUIRED_FIELDS if not getattr(draft, name)]
    if missing:
        raise StrategyValidationError(missing)

    strategy = PricingStrategy(
        id=f"strategy-{len(state.strategies) + 1}",
        **draft.model_dump(),
    )
    logger.info("Pricing strategy created id=%s name=%r", strategy.id, strategy.name)
    return replace(state, strategies=state.strategies + (strategy,))


def update_status(state: StrategyState, strategy_id: str, status: StrategyStatus) -> StrategyState:
    """
    Set the status of one strategy.

    Raises:
        ValueError: *status* is not a known strategy status.
        UnknownStrategyError: No strategy has *strategy_id*.
    """
    if status not in STRATEGY_STATUSES:
        raise ValueError(f"Unknown strategy status {status!r}. Valid: {list(STRATEGY_STATUSES)}")
    if not any(strategy.id == strategy_id for strategy in state.strategies):
        raise UnknownStrategyError(strategy_id)

    updated = tuple(
        strategy.model_copy(update={"status": status}) if strategy.id == strategy_id else strategy
        for strategy in state.strategies
    )
    logger.info("Pricing strategy status updated id=%s status=%s", strategy_id, status)
    return replace(state, strategies=updated)


def select_filters(
    state: StrategyState,
    *,
    category: str | None = None,
    region: str | None = None,
) -> StrategyState:
    return replace(
        state,
        selected_category=category if category is not None else state.selected_category,
        selected_region=region if region is not None else state.selected_region,
    )


def strategies_with_status(state: StrategyState, status: StrategyStatus) -> list[PricingStrategy]:
    return [strategy for strategy in state.strategies if strategy.status == status]
