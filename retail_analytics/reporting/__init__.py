"""
Reporting Module

Report result models and CSV export. The assembler lives in
retail_analytics.reporting.assembler and is imported from there.
"""
from .export import FACETS, CsvExport, export_facet, write_export
from .models import (
    BrandRow,
    CategoryRow,
    DailyTrend,
    DeadStockRow,
    MarginData,
    MarginRow,
    ProductRow,
    RedFlag,
    RedFlagType,
    ReportResult,
    RetailSummary,
    Severity,
    StaffRetailRow,
)

__all__ = [
    "FACETS",
    "CsvExport",
    "export_facet",
    "write_export",
    "BrandRow",
    "CategoryRow",
    "DailyTrend",
    "DeadStockRow",
    "MarginData",
    "MarginRow",
    "ProductRow",
    "RedFlag",
    "RedFlagType",
    "ReportResult",
    "RetailSummary",
    "Severity",
    "StaffRetailRow",
]
