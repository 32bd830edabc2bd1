"""
Data Transformation Module
"""
from .aggregation import PeriodAggregate, ProductAggregate, aggregate_line_items
from .catalog import CatalogIndex, canonical_name
from .comparison import compare_products, trend_pct
from .periods import ReportWindow

__all__ = [
    "CatalogIndex",
    "canonical_name",
    "PeriodAggregate",
    "ProductAggregate",
    "aggregate_line_items",
    "compare_products",
    "trend_pct",
    "ReportWindow",
]
