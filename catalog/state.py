"""
catalog/state.py

In-memory catalog workspace: categories, products and pricing rules.

Each transition takes a ``CatalogState`` and returns a new one; the input is
never mutated. New ids are ``cat-{n+1}`` / ``pr-{n+1}`` where ``n`` is the
current collection length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from app.schemas.catalog import (
    Category,
    CategoryDraft,
    CategoryRule,
    PricingRule,
    PricingRuleDraft,
    Product,
)

logger = logging.getLogger(__name__)


class UnknownCatalogItemError(KeyError):
    """
    Raised when a transition references an id that is not in the catalog.
    """


SEED_CATEGORIES: tuple[Category, ...] = (
    Category(
        id="cat-1",
        name="Premium Products",
        description="High-margin luxury items with premium pricing",
        attributes=("margin", "demand"),
        rules=(CategoryRule(id="rule-1", attribute="margin", operator="greater_than", value=30),),
        color="#dbeafe",
    ),
    Category(
        id="cat-2",
        name="Seasonal",
        description="Products with seasonal demand patterns",
        attributes=("seasonality",),
        rules=(CategoryRule(id="rule-2", attribute="seasonality", operator="equals", value="summer"),),
        color="#fed7aa",
    ),
    Category(
        id="cat-3",
        name="High Demand",
        description="Products with consistently high customer demand",
        attributes=("demand",),
        rules=(CategoryRule(id="rule-3", attribute="demand", operator="equals", value="high"),),
        color="#dcfce7",
    ),
)

_IMAGE = "https://images.unsplash.com/{}?q=80&w=500&auto=format&fit=crop"

SEED_PRODUCTS: tuple[Product, ...] = (
    Product(
        id="prod-1", name="Premium Wireless Headphones", sku="WH-PRO-001", price=299.99,
        category="Premium Products", demand="high", seasonality="Holiday", margin=35.5,
        trend="up", image_url=_IMAGE.format("photo-1505740420928-5e560c06d30e"),
    ),
    Product(
        id="prod-2", name="Summer Beach Sandals", sku="SBS-001", price=49.99,
        category="Seasonal", demand="medium", seasonality="Summer", margin=22.8,
        trend="up", image_url=_IMAGE.format("photo-1525966222134-fcfa99b8ae77"),
    ),
    Product(
        id="prod-3", name="Smartphone Holder", sku="SH-001", price=19.99,
        category="High Demand", demand="high", margin=45.2,
        trend="stable", image_url=_IMAGE.format("photo-1523293182086-7651a899d37f"),
    ),
    Product(
        id="prod-4", name="Winter Thermal Jacket", sku="WTJ-001", price=189.99,
        category="Seasonal", demand="medium", seasonality="Winter", margin=28.7,
        trend="down", image_url=_IMAGE.format("photo-1553062407-98eeb64c6a62"),
    ),
    Product(
        id="prod-5", name="Smart Watch Pro", sku="SWP-001", price=349.99,
        category="Premium Products", demand="high", margin=38.2,
        trend="up", image_url=_IMAGE.format("photo-1546868871-7041f2a55e12"),
    ),
    Product(
        id="prod-6", name="Mini Portable Speaker", sku="MPS-001", price=79.99,
        category="High Demand", demand="high", margin=32.5,
        trend="up", image_url=_IMAGE.format("photo-1564424224827-cd24b8915874"),
    ),
)

SEED_PRICING_RULES: tuple[PricingRule, ...] = (
    PricingRule(
        id="pr-1", name="Premium Product Markup", category_id="cat-1",
        type="percentage", value=15, priority=1, active=True,
    ),
    PricingRule(
        id="pr-2", name="Summer Sale", category_id="cat-2",
        type="percentage", value=-10, start_date="2023-06-01", end_date="2023-08-31",
        priority=2, active=True,
    ),
    PricingRule(
        id="pr-3", name="High Demand Fixed Price Increase", category_id="cat-3",
        type="fixed", value=5, priority=3, active=True,
    ),
)


@dataclass(frozen=True)
class CatalogState:
    categories: tuple[Category, ...] = ()
    products: tuple[Product, ...] = ()
    pricing_rules: tuple[PricingRule, ...] = ()


def _next_id(prefix: str, existing: tuple) -> str:
    """`<prefix>-<n>` with n one past the largest numeric suffix in use."""
    suffixes = [0]
    for item in existing:
        head, _, tail = item.id.rpartition("-")
        if head == prefix and tail.isdigit():
            suffixes.append(int(tail))
    return f"{prefix}-{max(suffixes) + 1}"


def initial_state() -> CatalogState:
    return CatalogState(
        categories=SEED_CATEGORIES,
        products=SEED_PRODUCTS,
        pricing_rules=SEED_PRICING_RULES,
    )


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def create_category(state: CatalogState, draft: CategoryDraft) -> CatalogState:
    category = Category(id=_next_id("cat", state.categories), **draft.model_dump())
    logger.info("Category created id=%s name=%r", category.id, category.name)
    return replace(state, categories=state.categories + (category,))


def categorize_product(state: CatalogState, product_id: str, category_id: str) -> CatalogState:
    """
    Assign a product to a category by storing the category *name* on it.

    Raises:
        UnknownCatalogItemError: product or category id not found.
    """
    category = next((c for c in state.categories if c.id == category_id), None)
    if category is None:
        raise UnknownCatalogItemError(category_id)
    if not any(p.id == product_id for p in state.products):
        raise UnknownCatalogItemError(product_id)

    products = tuple(
        p.model_copy(update={"category": category.name}) if p.id == product_id else p
        for p in state.products
    )
    logger.info("Product categorized product=%s category=%s", product_id, category.name)
    return replace(state, products=products)


def add_product(state: CatalogState, product: Product) -> CatalogState:
    return replace(state, products=state.products + (product,))


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------


def create_pricing_rule(state: CatalogState, draft: PricingRuleDraft) -> CatalogState:
    rule = PricingRule(id=_next_id("pr", state.pricing_rules), **draft.model_dump())
    logger.info("Pricing rule created id=%s name=%r", rule.id, rule.name)
    return replace(state, pricing_rules=state.pricing_rules + (rule,))


def update_pricing_rule(state: CatalogState, rule: PricingRule) -> CatalogState:
    """Replace the rule with the same id. Raises UnknownCatalogItemError if absent."""
    if not any(existing.id == rule.id for existing in state.pricing_rules):
        raise UnknownCatalogItemError(rule.id)
    rules = tuple(rule if existing.id == rule.id else existing for existing in state.pricing_rules)
    logger.info("Pricing rule updated id=%s", rule.id)
    return replace(state, pricing_rules=rules)


def delete_pricing_rule(state: CatalogState, rule_id: str) -> CatalogState:
    # Deleting an unknown id is a no-op.
    rules = tuple(rule for rule in state.pricing_rules if rule.id != rule_id)
    if len(rules) != len(state.pricing_rules):
        logger.info("Pricing rule deleted id=%s", rule_id)
    return replace(state, pricing_rules=rules)


# ---------------------------------------------------------------------------
# Dashboard views
# ---------------------------------------------------------------------------


def product_count_by_category(state: CatalogState) -> list[dict[str, object]]:
    """One row per category: name, product count and display color."""
    return [
        {
            "name": category.name,
            "value": sum(1 for p in state.products if p.category == category.name),
            "color": category.color,
        }
        for category in state.categories
    ]


def average_product_margin(state: CatalogState) -> float | None:
    """Mean margin over products that have one; ``None`` when none do."""
    margins = [p.margin for p in state.products if p.margin is not None]
    if not margins:
        return None
    return sum(margins) / len(margins)


def category_name(state: CatalogState, category_id: str) -> str:
    category = next((c for c in state.categories if c.id == category_id), None)
    return category.name if category is not None else "Unknown"
