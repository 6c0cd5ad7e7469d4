"""
app/repositories/sales_repository.py

Raw sales row access: hosted ``sales`` table and the bundled JSON fixture.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from app.connectors.base import BaaSTableClient


class SalesFixtureError(RuntimeError):
    """
    Raised when the bundled sales fixture is missing or unreadable.
    """


class SalesRepository:
    """
    Reads raw sales rows from the hosted table, newest first.

    The fetch is attempted once; callers fall back to the fixture on failure.
    """

    def __init__(self, client: BaaSTableClient, *, table: str = "sales") -> None:
        self._client = client
        self._table = table

    def fetch_all(self) -> list[dict[str, Any]]:
        return self._client.select(self._table, order="date", descending=True, max_retries=0)


def load_fixture(path: Path) -> list[dict[str, Any]]:
    """
    Read the bundled fixture: a JSON array of flat sales rows.
    """

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise SalesFixtureError(f"Sales fixture not found: {path}") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SalesFixtureError(f"Sales fixture could not be read: {path}: {exc}") from exc

    if not isinstance(payload, list):
        raise SalesFixtureError(f"Sales fixture must contain a JSON array: {path}")
    return [row for row in payload if isinstance(row, dict)]
