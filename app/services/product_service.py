"""
app/services/product_service.py

Product creation against the hosted ``products`` table.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from app.config import get_baas_settings
from app.connectors.base import BaaSTableClient
from app.logging_utils import log_event
from app.repositories.product_repository import ProductRepository
from app.schemas.catalog import ProductInput

logger = logging.getLogger(__name__)


class ProductService:
    """
    Persists validated products for the signed-in user.
    """

    def __init__(self, *, repository: ProductRepository) -> None:
        self._repository = repository

    def create_product(self, product: ProductInput, *, user_id: str) -> dict[str, Any] | None:
        """
        Insert *product* owned by *user_id*.

        Raises:
            BaaSRequestError: The backend rejected or never answered the insert.
        """
        stored = self._repository.insert(product, user_id=user_id)
        log_event(logger, logging.INFO, "product_created", sku=product.sku, user_id=user_id)
        return stored


@lru_cache(maxsize=1)
def get_product_service() -> ProductService:
    """
    Build and cache the product service from environment settings.
    """

    settings = get_baas_settings()
    client = BaaSTableClient(settings=settings)
    return ProductService(repository=ProductRepository(client, table=settings.products_table))
