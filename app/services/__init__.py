"""
app/services package marker.
"""

from app.services.export_service import CSVExportError, export_csv, parse_csv
from app.services.preprocessing_service import DataQualityReport, assess_quality, clean_records
from app.services.product_service import ProductService, get_product_service
from app.services.sales_loader_service import (
    LoadNotice,
    LoadResult,
    SalesLoaderService,
    get_sales_loader_service,
)
from app.services.upload_service import SalesUploadError, load_upload, parse_upload

__all__ = [
    "CSVExportError",
    "export_csv",
    "parse_csv",
    "DataQualityReport",
    "assess_quality",
    "clean_records",
    "ProductService",
    "get_product_service",
    "LoadNotice",
    "LoadResult",
    "SalesLoaderService",
    "get_sales_loader_service",
    "SalesUploadError",
    "load_upload",
    "parse_upload",
]
