"""
app/services/upload_service.py

JSON upload parsing for replacement sales datasets.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.config import get_analytics_settings, get_upload_settings
from app.logging_utils import log_event
from sales.normalizer import SalesRecord, normalize_records

logger = logging.getLogger(__name__)


class SalesUploadError(ValueError):
    """
    Raised when an uploaded file cannot be used as a sales dataset.
    """


def parse_upload(
    content: bytes,
    *,
    filename: str = "upload.json",
    max_bytes: int | None = None,
) -> list[dict[str, Any]]:
    """
    Decode an uploaded JSON array of sales rows.

    Rows without an ``id`` get ``upload-{index}``. Rows are otherwise returned
    untouched; normalization happens downstream.

    Raises:
        SalesUploadError: File too large, not UTF-8, not JSON, not an array,
            or an array entry that is not an object.
    """
    limit = max_bytes if max_bytes is not None else get_upload_settings().max_bytes
    if len(content) > limit:
        raise SalesUploadError(f"Uploaded file exceeds the {limit} byte limit.")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SalesUploadError("Uploaded file must be UTF-8 encoded.") from exc

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SalesUploadError(f"Uploaded file is not valid JSON: {exc.msg}") from exc

    if not isinstance(payload, list):
        raise SalesUploadError("Uploaded file must contain an array of sales data")

    rows: list[dict[str, Any]] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise SalesUploadError(f"Entry {index} is not a JSON object.")
        row = dict(item)
        if not row.get("id"):
            row["id"] = f"upload-{index}"
        rows.append(row)

    log_event(logger, logging.INFO, "sales_uploaded", filename=filename, records=len(rows))
    return rows


def load_upload(content: bytes, *, filename: str = "upload.json") -> list[SalesRecord]:
    """
    Parse and normalize an upload without filling defaults, so the quality
    report can still see empty fields.
    """
    rows = parse_upload(content, filename=filename)
    return normalize_records(
        rows,
        fill_defaults=False,
        year=get_analytics_settings().fallback_year,
    )
