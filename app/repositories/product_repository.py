"""
app/repositories/product_repository.py

Hosted ``products`` table persistence.
"""

from __future__ import annotations

from typing import Any

from app.connectors.base import BaaSTableClient
from app.schemas.catalog import ProductInput


class ProductRepository:
    """
    Repository responsible for storing validated products.
    """

    def __init__(self, client: BaaSTableClient, *, table: str = "products") -> None:
        self._client = client
        self._table = table

    def insert(self, product: ProductInput, *, user_id: str) -> dict[str, Any] | None:
        return self._client.insert(self._table, product.to_row(user_id))
