"""
Data Ingestion Module
"""
from .normalizer import LineItemNormalizer, normalize_records
from .pagination import OffsetPaginator, fetch_all_pages
from .records import LineItem, LineType
from .sources import LocationSelector, RetailDataSource, SourceCapability

__all__ = [
    "LineItemNormalizer",
    "normalize_records",
    "OffsetPaginator",
    "fetch_all_pages",
    "LineItem",
    "LineType",
    "LocationSelector",
    "RetailDataSource",
    "SourceCapability",
]
