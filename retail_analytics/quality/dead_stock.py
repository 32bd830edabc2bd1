"""
Dead-Stock Detection

Catalog products with stock on hand and no sales in the current period,
ordered by the retail value sitting on the shelf (what to clear first).
"""

from typing import List, Tuple

import structlog

from retail_analytics.reporting.models import DeadStockRow
from retail_analytics.transformation.aggregation import PeriodAggregate
from retail_analytics.transformation.catalog import CatalogIndex
from retail_analytics.transformation.periods import ReportWindow

logger = structlog.get_logger(__name__)


def detect_dead_stock(
    catalog: CatalogIndex,
    current: PeriodAggregate,
    prior: PeriodAggregate,
    window: ReportWindow,
) -> Tuple[DeadStockRow, ...]:
    """
    Unsold, in-stock catalog products.

    When the product sold during the prior period, the prior period's end
    date stands in for its last sale and staleness is measured from there to
    the end of the current window. Otherwise the product is stale for at
    least the whole current span.
    """
    prior_window = window.prior()
    sold = current.sold_names()
    rows: List[DeadStockRow] = []

    for key, entry in catalog:
        if key in sold or entry.quantity_on_hand <= 0:
            continue

        if key in prior.products:
            last_sold = prior_window.end
            days_stale = (window.end - last_sold).days
        else:
            last_sold = None
            days_stale = window.span_days

        rows.append(DeadStockRow(
            name=entry.name,
            brand=entry.brand,
            category=entry.category,
            retail_price=entry.retail_price,
            quantity_on_hand=entry.quantity_on_hand,
            last_sold_date=last_sold,
            days_stale=days_stale,
            capital_tied_up=entry.retail_price * entry.quantity_on_hand,
        ))

    rows.sort(key=lambda r: r.capital_tied_up, reverse=True)

    if rows:
        logger.debug(
            "Dead stock detected",
            products=len(rows),
            capital_tied_up=round(sum(r.capital_tied_up for r in rows), 2),
        )
    return tuple(rows)
