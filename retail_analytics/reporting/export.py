"""
Tabular Export

CSV rendering of one report facet. Every field is quoted and embedded
quotes are doubled (standard CSV quoting); money and percentages are
written with two decimals. Files are named retail-<facet>-<YYYY-MM-DD>.csv.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import polars as pl
import structlog

from retail_analytics.exceptions import UnknownFacetError
from retail_analytics.reporting.models import ReportResult

logger = structlog.get_logger(__name__)

Column = Tuple[str, Any, Callable[[int, Any], Any]]


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


_FACETS: Dict[str, Tuple[str, List[Column]]] = {
    "products": ("products", [
        ("Product", pl.Utf8, lambda i, r: r.name),
        ("Category", pl.Utf8, lambda i, r: r.category or ""),
        ("Units", pl.Int64, lambda i, r: r.units_sold),
        ("Revenue", pl.Float64, lambda i, r: r.revenue),
        ("Avg Price", pl.Float64, lambda i, r: r.avg_price),
        ("Discount", pl.Float64, lambda i, r: r.discount),
        ("Trend %", pl.Float64, lambda i, r: r.revenue_trend),
        ("Margin %", pl.Float64, lambda i, r: r.margin),
    ]),
    "brands": ("brand_performance", [
        ("Brand", pl.Utf8, lambda i, r: r.brand),
        ("Revenue", pl.Float64, lambda i, r: r.revenue),
        ("Prior Revenue", pl.Float64, lambda i, r: r.prior_revenue),
        ("Trend %", pl.Float64, lambda i, r: r.revenue_trend),
        ("Units", pl.Int64, lambda i, r: r.units_sold),
        ("Products", pl.Int64, lambda i, r: r.product_count),
        ("Avg Price", pl.Float64, lambda i, r: r.avg_price),
        ("Margin %", pl.Float64, lambda i, r: r.margin),
        ("% of Total", pl.Float64, lambda i, r: r.pct_of_total),
        ("Top Product", pl.Utf8, lambda i, r: r.top_product),
        ("Stale Products", pl.Utf8, lambda i, r: "; ".join(r.stale_products)),
    ]),
    "deadstock": ("dead_stock", [
        ("Product", pl.Utf8, lambda i, r: r.name),
        ("Brand", pl.Utf8, lambda i, r: r.brand),
        ("Category", pl.Utf8, lambda i, r: r.category),
        ("Retail Price", pl.Float64, lambda i, r: r.retail_price),
        ("On Hand", pl.Int64, lambda i, r: r.quantity_on_hand),
        ("Last Sold", pl.Utf8, lambda i, r: _iso(r.last_sold_date)),
        ("Days Stale", pl.Int64, lambda i, r: r.days_stale),
        ("Capital Tied Up", pl.Float64, lambda i, r: r.capital_tied_up),
    ]),
    "staff": ("staff_retail", [
        ("Rank", pl.Int64, lambda i, r: i + 1),
        ("Stylist", pl.Utf8, lambda i, r: r.name),
        ("Branch", pl.Utf8, lambda i, r: r.branch_name or ""),
        ("Product Revenue", pl.Float64, lambda i, r: r.product_revenue),
        ("Units Sold", pl.Int64, lambda i, r: r.units_sold),
        ("Attachment Rate %", pl.Int64, lambda i, r: r.attachment_rate),
        ("Avg Ticket", pl.Float64, lambda i, r: r.avg_ticket),
    ]),
    "categories": ("categories", [
        ("Category", pl.Utf8, lambda i, r: r.category),
        ("Revenue", pl.Float64, lambda i, r: r.revenue),
        ("Units", pl.Int64, lambda i, r: r.units),
        ("Products", pl.Int64, lambda i, r: r.product_count),
        ("Avg Price", pl.Float64, lambda i, r: r.avg_price),
        ("% of Total", pl.Float64, lambda i, r: r.pct_of_total),
    ]),
}

FACETS: Tuple[str, ...] = tuple(_FACETS)


@dataclass(frozen=True)
class CsvExport:
    facet: str
    filename: str
    content: str
    rows: int


def facet_frame(result: ReportResult, facet: str) -> pl.DataFrame:
    """The rows of one facet as a DataFrame, one column per CSV column."""
    if facet not in _FACETS:
        raise UnknownFacetError(facet, list(FACETS))

    attribute, columns = _FACETS[facet]
    rows: Sequence[Any] = getattr(result, attribute)
    return pl.DataFrame(
        {header: [getter(i, row) for i, row in enumerate(rows)] for header, _, getter in columns},
        schema={header: dtype for header, dtype, _ in columns},
        strict=False,
    )


def export_facet(result: ReportResult, facet: str, today: Optional[date] = None) -> CsvExport:
    """
    Render one facet as CSV text.

    Args:
        result: Report to export
        facet: One of products, brands, deadstock, staff, categories
        today: Date stamped into the filename, defaults to today

    Returns:
        CsvExport with filename and content
    """
    frame = facet_frame(result, facet)
    content = frame.write_csv(quote_style="always", float_precision=2)
    stamp = (today or date.today()).isoformat()
    return CsvExport(
        facet=facet,
        filename=f"retail-{facet}-{stamp}.csv",
        content=content,
        rows=frame.height,
    )


def write_export(
    result: ReportResult,
    facet: str,
    directory: Union[str, Path],
    today: Optional[date] = None,
) -> Path:
    """Write one facet export into `directory` and return its path."""
    export = export_facet(result, facet, today)
    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    path = output_dir / export.filename
    path.write_text(export.content, encoding="utf-8")
    logger.info(f"Written {export.rows} rows to {path}", facet=facet)
    return path
