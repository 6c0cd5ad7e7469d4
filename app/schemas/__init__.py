"""
app/schemas package marker.
"""

from app.schemas.catalog import (
    Category,
    CategoryDraft,
    CategoryRule,
    PricingRule,
    PricingRuleDraft,
    Product,
    ProductInput,
)
from app.schemas.pricing import PricingStrategy, PricingStrategyDraft

__all__ = [
    "Category",
    "CategoryDraft",
    "CategoryRule",
    "PricingRule",
    "PricingRuleDraft",
    "Product",
    "ProductInput",
    "PricingStrategy",
    "PricingStrategyDraft",
]
