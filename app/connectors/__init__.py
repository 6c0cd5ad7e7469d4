"""
app/connectors package marker.
"""

from app.connectors.base import BaaSNotConfiguredError, BaaSRequestError, BaaSTableClient

__all__ = [
    "BaaSNotConfiguredError",
    "BaaSRequestError",
    "BaaSTableClient",
]
