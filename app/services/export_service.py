"""
app/services/export_service.py

CSV export of canonical sales records, and the matching reader.

Column order is fixed::

    id, product, category, quantity, unit_price, total_sales, region, date, customer_type

``None`` values are written as empty strings. ``parse_csv`` feeds rows back
through the normalizer, so the nine exported fields round-trip. ``sku`` and
``margin`` are not exported and come back at their defaults.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence

from app.logging_utils import log_event
from sales.normalizer import SalesRecord, normalize_records

logger = logging.getLogger(__name__)

EXPORT_FIELDS: tuple[str, ...] = (
    "id",
    "product",
    "category",
    "quantity",
    "unit_price",
    "total_sales",
    "region",
    "date",
    "customer_type",
)
EXPORT_FILENAME = "cleaned_sales_data.csv"


class CSVExportError(ValueError):
    """
    Raised when a CSV file cannot be read back as sales records.
    """


def export_csv(records: Sequence[SalesRecord]) -> str:
    """Serialize *records* to CSV text with a header row."""
    buf = io.StringIO()
    writer = csv.DictWriter(
        buf,
        fieldnames=list(EXPORT_FIELDS),
        extrasaction="ignore",
        restval="",
        lineterminator="\n",
    )
    writer.writeheader()
    for record in records:
        row = record.to_dict()
        writer.writerow({k: ("" if v is None else v) for k, v in row.items()})

    log_event(logger, logging.INFO, "sales_exported", records=len(records))
    return buf.getvalue()


def parse_csv(text: str) -> list[SalesRecord]:
    """
    Read CSV text in the export layout back into canonical records.

    Raises:
        CSVExportError: Header row missing or not parseable as CSV.
    """
    try:
        reader = csv.DictReader(io.StringIO(text))
        headers = reader.fieldnames or []
        if not headers:
            raise CSVExportError("CSV header row is missing.")
        rows = [dict(row) for row in reader]
    except csv.Error as exc:
        raise CSVExportError(f"Invalid CSV format: {exc}") from exc
    return normalize_records(rows, fill_defaults=False)
