"""
app/services/preprocessing_service.py

Data-quality assessment and cleaning for the working sales dataset.

Quality report
--------------
Per record, each of ``product``, ``category``, ``region`` and ``date`` that is
empty counts as one missing value, and so does a ``unit_price`` of exactly 0
(the normalizer's stand-in for an absent price). A record with a negative unit
price or a quantity <= 0 counts as one anomaly. The score is::

    round(100 * (1 - (missing + anomalies) / (total_records * 6)))

and 100 for an empty dataset.

Cleaning
--------
Fills default category / region / customer type, flips negative prices to
positive, raises non-positive quantities to 1 and rewrites dates as ISO
``YYYY-MM-DD`` (``{fallback_year}-01-01`` when unparseable). ``total_sales``
is derived, so it follows automatically.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

import pandas as pd

from app.logging_utils import log_event
from sales.normalizer import (
    DEFAULT_CATEGORY,
    DEFAULT_CUSTOMER_TYPE,
    DEFAULT_REGION,
    DEFAULT_YEAR,
    SalesRecord,
    parse_iso_date,
)

logger = logging.getLogger(__name__)

_CHECKED_FIELDS_PER_RECORD = 6
_TEXT_FIELDS: tuple[str, ...] = ("product", "category", "region", "date")


@dataclass(frozen=True)
class DataQualityReport:
    total_records: int
    missing_values: int
    anomalies: int
    quality_score: int


def _is_anomaly(record: SalesRecord) -> bool:
    return record.unit_price < 0 or record.quantity <= 0


def assess_quality(records: Sequence[SalesRecord]) -> DataQualityReport:
    total = len(records)
    if total == 0:
        return DataQualityReport(total_records=0, missing_values=0, anomalies=0, quality_score=100)

    missing = 0
    anomalies = 0
    for record in records:
        missing += sum(1 for name in _TEXT_FIELDS if not getattr(record, name))
        if record.unit_price == 0:
            missing += 1
        if _is_anomaly(record):
            anomalies += 1

    # Halves round up.
    score = math.floor(100 * (1 - (missing + anomalies) / (total * _CHECKED_FIELDS_PER_RECORD)) + 0.5)
    return DataQualityReport(
        total_records=total,
        missing_values=missing,
        anomalies=anomalies,
        quality_score=score,
    )


def normalize_date_text(value: str, *, fallback_year: int = DEFAULT_YEAR) -> str:
    """
    Render *value* as ``YYYY-MM-DD``.

    ISO dates pass through; other common layouts are parsed with pandas.
    Anything unparseable becomes January 1st of *fallback_year*.
    """
    fallback = f"{fallback_year:04d}-01-01"
    if not value:
        return fallback
    parsed = parse_iso_date(value)
    if parsed is not None:
        return parsed.isoformat()
    timestamp = pd.to_datetime(value, errors="coerce")
    if pd.isna(timestamp):
        return fallback
    return timestamp.date().isoformat()


def clean_record(record: SalesRecord, *, fallback_year: int = DEFAULT_YEAR) -> SalesRecord:
    return replace(
        record,
        category=record.category or DEFAULT_CATEGORY,
        region=record.region or DEFAULT_REGION,
        customer_type=record.customer_type or DEFAULT_CUSTOMER_TYPE,
        unit_price=abs(record.unit_price),
        quantity=1.0 if record.quantity <= 0 else record.quantity,
        date=normalize_date_text(record.date, fallback_year=fallback_year),
    )


def clean_records(
    records: Sequence[SalesRecord],
    *,
    fallback_year: int = DEFAULT_YEAR,
) -> list[SalesRecord]:
    """Clean every record; length and order are preserved."""
    cleaned = [clean_record(record, fallback_year=fallback_year) for record in records]
    changed = sum(1 for before, after in zip(records, cleaned) if before != after)
    log_event(
        logger,
        logging.INFO,
        "sales_cleaned",
        records=len(cleaned),
        changed=changed,
    )
    return cleaned
