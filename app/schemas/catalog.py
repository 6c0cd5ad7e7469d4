"""
app/schemas/catalog.py

Catalog models: categories with attribute rules, products and pricing rules.

``ProductInput`` is the validated form payload for a new product. The other
models describe stored entities and only constrain their field types.
"""

from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CATEGORY_COLOR = "#e2e8f0"

RuleOperator = Literal["equals", "contains", "greater_than", "less_than", "between"]
PricingRuleType = Literal["fixed", "percentage", "margin-based"]


class CategoryRule(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    attribute: str
    operator: RuleOperator
    value: str | float | tuple[float, float]


class CategoryDraft(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    description: str = ""
    attributes: tuple[str, ...] = ()
    rules: tuple[CategoryRule, ...] = ()
    color: str = DEFAULT_CATEGORY_COLOR


class Category(CategoryDraft):
    id: str = Field(min_length=1)


class Product(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    name: str
    sku: str
    price: float
    category: str | None = None
    demand: str | None = None
    seasonality: str | None = None
    margin: float | None = None
    trend: str | None = None
    image_url: str | None = None


class ProductInput(BaseModel):
    """
    New-product form payload.

    Validation rules:
      - name at least 2 characters, sku at least 3
      - price strictly positive; margin strictly positive when given
      - image_url empty or an absolute http(s) URL
    """

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=2)
    sku: str = Field(min_length=3)
    price: float = Field(gt=0)
    category: str | None = None
    demand: str | None = None
    seasonality: str | None = None
    margin: float | None = Field(default=None, gt=0)
    trend: str | None = None
    image_url: str = ""

    @field_validator("image_url")
    @classmethod
    def _valid_url_or_empty(cls, value: str) -> str:
        if not value:
            return ""
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("Please enter a valid URL")
        return value

    def to_row(self, user_id: str) -> dict[str, object]:
        """Insert payload for the products table; empty optional fields become null."""
        return {
            "name": self.name,
            "sku": self.sku,
            "price": self.price,
            "category": self.category or None,
            "demand": self.demand or None,
            "seasonality": self.seasonality or None,
            "margin": self.margin,
            "trend": self.trend or None,
            "image_url": self.image_url or None,
            "user_id": user_id,
        }


class PricingRuleDraft(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    category_id: str = Field(min_length=1)
    type: PricingRuleType = "percentage"
    value: float = 0.0
    start_date: str | None = None
    end_date: str | None = None
    priority: int = 1
    active: bool = True


class PricingRule(PricingRuleDraft):
    id: str = Field(min_length=1)
