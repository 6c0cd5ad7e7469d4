"""
sales/normalizer.py

Canonical sales record and the single normalization path for raw sales rows.

Two source shapes are accepted:

    flat            productName, sku, salesLocation, price, demand, season,
                    month, quantity, category, margin, trend
                    (bundled fixture file)
    canonical-ish   product, category, quantity, unit_price, total_sales,
                    region, date, customer_type
                    (hosted ``sales`` table, uploads, CSV re-imports)

The presence of a ``productName`` key selects the flat mapping. Records never
fail normalization: missing or non-numeric quantities and prices become 0.0,
which propagates to ``total_sales == 0``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_REGION = "Unknown"
DEFAULT_CUSTOMER_TYPE = "Regular"
DEFAULT_YEAR = 2023

FLAT_SHAPE_MARKER = "productName"

MONTH_NUMBERS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}


@dataclass(frozen=True)
class SalesRecord:
    """
    Canonical sales row consumed by aggregation, simulation and export.

    ``total_sales`` is derived from quantity and unit price on every access.
    """

    id: str
    product: str
    category: str
    quantity: float
    unit_price: float
    region: str
    date: str
    customer_type: str
    sku: str | None = None
    margin: float = 0.0

    @property
    def total_sales(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> dict[str, Any]:
        """Return the canonical-ish wire shape, including ``total_sales``."""
        payload = asdict(self)
        payload["total_sales"] = self.total_sales
        return payload


def month_to_iso_date(month: Any, year: int = DEFAULT_YEAR) -> str:
    """
    Map an English month name to the first day of that month.

    Unrecognised or missing month names map to January.
    """
    number = MONTH_NUMBERS.get(str(month).strip().lower(), 1) if month else 1
    return f"{year:04d}-{number:02d}-01"


def parse_iso_date(value: Any) -> date | None:
    """Parse the leading ``YYYY-MM-DD`` part of *value*; ``None`` when it is not a date."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def is_flat_shape(raw: Mapping[str, Any]) -> bool:
    return FLAT_SHAPE_MARKER in raw


def normalize_record(
    raw: Mapping[str, Any] | SalesRecord,
    *,
    index: int = 0,
    fill_defaults: bool = True,
    year: int = DEFAULT_YEAR,
) -> SalesRecord:
    """
    Convert one raw row (either shape) or an existing record into a SalesRecord.

    Args:
        raw:           Source mapping, or an already-normalized SalesRecord.
        index:         Position in the source list; used for synthesized ids.
        fill_defaults: Replace empty category, region and customer type
                       with the defaults.
        year:          Year used when a date is synthesized from a month name.
    """
    if isinstance(raw, SalesRecord):
        raw = raw.to_dict()

    if is_flat_shape(raw):
        product = raw.get(FLAT_SHAPE_MARKER)
        unit_price = raw.get("price")
        region = raw.get("salesLocation")
        customer_type = DEFAULT_CUSTOMER_TYPE
        raw_date = raw.get("date")
    else:
        product = raw.get("product")
        unit_price = raw.get("unit_price")
        region = raw.get("region")
        customer_type = raw.get("customer_type")
        raw_date = raw.get("date")

    parsed_date = parse_iso_date(raw_date)
    iso_date = (
        parsed_date.isoformat()
        if parsed_date is not None
        else month_to_iso_date(raw.get("month"), year)
    )

    category = _to_text(raw.get("category"))
    region_text = _to_text(region)
    customer_text = _to_text(customer_type)
    if fill_defaults:
        category = category or DEFAULT_CATEGORY
        region_text = region_text or DEFAULT_REGION
        customer_text = customer_text or DEFAULT_CUSTOMER_TYPE

    sku = _to_text(raw.get("sku")) or None
    record_id = _to_text(raw.get("id")) or f"record-{index}"

    return SalesRecord(
        id=record_id,
        product=_to_text(product),
        category=category,
        quantity=_to_number(raw.get("quantity")),
        unit_price=_to_number(unit_price),
        region=region_text,
        date=iso_date,
        customer_type=customer_text,
        sku=sku,
        margin=_to_number(raw.get("margin")),
    )


def normalize_records(
    raws: Iterable[Mapping[str, Any] | SalesRecord],
    *,
    fill_defaults: bool = True,
    year: int = DEFAULT_YEAR,
) -> list[SalesRecord]:
    """
    Normalize a mixed-shape list, preserving length and order.
    """
    records = [
        normalize_record(raw, index=index, fill_defaults=fill_defaults, year=year)
        for index, raw in enumerate(raws)
    ]
    logger.debug("normalize_records produced %d records", len(records))
    return records


def _to_number(value: Any) -> float:
    # bool is an int subclass; a flag is not a quantity.
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
