"""
app/schemas/pricing.py

Pricing strategy models used by the strategy workspace.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

StrategyStatus = Literal["proposed", "approved", "implemented", "rejected"]
ChangeType = Literal["percentage", "fixed"]

STRATEGY_STATUSES: tuple[str, ...] = ("proposed", "approved", "implemented", "rejected")


class PricingStrategyDraft(BaseModel):
    """
    Form payload for a new pricing strategy.

    Required fields are checked by the strategy reducer so that a blank form
    can still be represented and edited.
    """

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = ""
    description: str = ""
    target_category: str = ""
    target_region: str | None = None
    price_change: float = 0.0
    change_type: ChangeType = "percentage"
    expected_impact: float = 0.0
    implementation_date: str = ""
    collaborators: tuple[str, ...] = ()
    status: StrategyStatus = "proposed"


class PricingStrategy(PricingStrategyDraft):
    """A stored pricing strategy."""

    id: str = Field(min_length=1)
