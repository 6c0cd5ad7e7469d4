"""
app/repositories package marker.
"""

from app.repositories.product_repository import ProductRepository
from app.repositories.sales_repository import SalesFixtureError, SalesRepository, load_fixture

__all__ = [
    "ProductRepository",
    "SalesFixtureError",
    "SalesRepository",
    "load_fixture",
]
