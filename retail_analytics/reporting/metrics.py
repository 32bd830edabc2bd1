"""
Derived Metrics

Margin, discount rate, attachment rate, average ticket and the
category/brand rollups, all computed from finished period aggregates.
Every division has a defined fallback so incomplete master data can never
break a report.
"""

import math
from typing import Dict, Iterable, List, Optional, Set, Tuple

from retail_analytics.reporting.models import (
    BrandRow,
    CategoryRow,
    DailyTrend,
    MarginData,
    MarginRow,
    ProductRow,
    RetailSummary,
)
from retail_analytics.transformation.aggregation import PeriodAggregate
from retail_analytics.transformation.catalog import UNCATEGORIZED, CatalogIndex, canonical_name
from retail_analytics.transformation.comparison import ProductTrend, trend_pct


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def discount_rate(discount: float, revenue: float) -> float:
    """Discount as a percentage of the pre-discount value."""
    gross = revenue + discount
    return discount / gross * 100 if gross > 0 else 0.0


def average_ticket(revenue: float, units: int) -> float:
    return revenue / units if units > 0 else 0.0


def attachment_rate(service_transactions: Set[str], product_transactions: Set[str]) -> int:
    """Share of service transactions that also sold a product, as a whole percent."""
    if not service_transactions:
        return 0
    attached = len(service_transactions & product_transactions)
    return round_half_up(attached / len(service_transactions) * 100)


def margin_pct(revenue: float, unit_cost: Optional[float], units: int) -> Optional[float]:
    """Gross margin percent, or None when the product has no known cost."""
    if unit_cost is None:
        return None
    if revenue <= 0:
        return 0.0
    return (revenue - unit_cost * units) / revenue * 100


# =============================================================================
# ROWS
# =============================================================================

def resolve_category(name: str, sold_category: Optional[str], catalog: CatalogIndex) -> Optional[str]:
    """Catalog category when the catalog knows one, else the category on the sale line."""
    entry = catalog.get(name)
    if entry is not None and entry.category != UNCATEGORIZED:
        return entry.category
    return sold_category


def build_product_rows(
    current: PeriodAggregate,
    trends: Dict[str, ProductTrend],
    catalog: CatalogIndex,
) -> Tuple[ProductRow, ...]:
    """One row per sold product, highest revenue first."""
    rows: List[ProductRow] = []
    for key, product in current.products.items():
        trend = trends[key]
        rows.append(ProductRow(
            name=product.name,
            category=resolve_category(product.name, product.category, catalog),
            units_sold=product.units_sold,
            revenue=product.revenue,
            avg_price=average_ticket(product.revenue, product.units_sold),
            discount=product.discount,
            discount_rate=discount_rate(product.discount, product.revenue),
            prior_revenue=trend.prior_revenue,
            revenue_trend=trend.trend,
            margin=margin_pct(product.revenue, catalog.cost_for(product.name), product.units_sold),
            last_sold=product.last_sold,
        ))
    rows.sort(key=lambda r: r.revenue, reverse=True)
    return tuple(rows)


def build_category_rows(products: Iterable[ProductRow], total_revenue: float) -> Tuple[CategoryRow, ...]:
    """
    Category rollup. `pct_of_total` is relative to all product revenue in
    the period, not to the category's own total.
    """
    rollup: Dict[str, dict] = {}
    for p in products:
        category = p.category or UNCATEGORIZED
        bucket = rollup.setdefault(category, {"revenue": 0.0, "units": 0, "products": set()})
        bucket["revenue"] += p.revenue
        bucket["units"] += p.units_sold
        bucket["products"].add(canonical_name(p.name))

    rows = [
        CategoryRow(
            category=category,
            revenue=d["revenue"],
            units=d["units"],
            product_count=len(d["products"]),
            avg_price=average_ticket(d["revenue"], d["units"]),
            pct_of_total=d["revenue"] / total_revenue * 100 if total_revenue > 0 else 0.0,
        )
        for category, d in rollup.items()
    ]
    rows.sort(key=lambda r: r.revenue, reverse=True)
    return tuple(rows)


def build_brand_rows(
    products: Iterable[ProductRow],
    prior: PeriodAggregate,
    catalog: CatalogIndex,
    total_revenue: float,
) -> Tuple[BrandRow, ...]:
    """
    Brand rollup, derived from product rows through the catalog.

    Products the catalog does not know land in "Uncategorized". A brand's
    stale products are its catalog entries with no sales this period.
    """
    rollup: Dict[str, dict] = {}
    sold: Set[str] = set()

    for p in products:
        key = canonical_name(p.name)
        sold.add(key)
        brand = catalog.brand_for(p.name)
        bucket = rollup.setdefault(brand, {
            "revenue": 0.0,
            "prior_revenue": 0.0,
            "units": 0,
            "products": {},
            "cost": 0.0,
        })
        bucket["revenue"] += p.revenue
        bucket["units"] += p.units_sold
        bucket["products"][key] = (p.name, p.revenue)
        bucket["prior_revenue"] += prior.revenue_for(p.name)

        unit_cost = catalog.cost_for(p.name)
        if unit_cost is not None:
            bucket["cost"] += unit_cost * p.units_sold

    rows: List[BrandRow] = []
    for brand, d in rollup.items():
        top_product = ""
        top_revenue = 0.0
        for name, revenue in d["products"].values():
            if revenue > top_revenue:
                top_product, top_revenue = name, revenue

        stale = tuple(
            entry.name for key, entry in catalog
            if entry.brand == brand and key not in sold
        )

        revenue = d["revenue"]
        cost = d["cost"]
        rows.append(BrandRow(
            brand=brand,
            revenue=revenue,
            prior_revenue=d["prior_revenue"],
            revenue_trend=trend_pct(revenue, d["prior_revenue"]),
            units_sold=d["units"],
            product_count=len(d["products"]),
            avg_price=average_ticket(revenue, d["units"]),
            margin=(revenue - cost) / revenue * 100 if revenue > 0 and cost > 0 else 0.0,
            pct_of_total=revenue / total_revenue * 100 if total_revenue > 0 else 0.0,
            top_product=top_product,
            stale_products=stale,
        ))

    rows.sort(key=lambda r: r.revenue, reverse=True)
    return tuple(rows)


def build_margin_data(products: Iterable[ProductRow], catalog: CatalogIndex) -> Optional[MarginData]:
    """
    Margin block, or None when no catalog product has a positive cost price
    (cost tracking is not enabled for the business).
    """
    if not catalog.has_cost_data:
        return None

    rows: List[MarginRow] = []
    total_cost = 0.0
    for p in products:
        unit_cost = catalog.cost_for(p.name)
        if unit_cost is None:
            continue
        cost = unit_cost * p.units_sold
        total_cost += cost
        profit = p.revenue - cost
        rows.append(MarginRow(
            name=p.name,
            revenue=p.revenue,
            cost=cost,
            margin=profit / p.revenue * 100 if p.revenue > 0 else 0.0,
            profit=profit,
        ))

    rows.sort(key=lambda r: r.profit, reverse=True)
    margin_revenue = sum(r.revenue for r in rows)
    profit = margin_revenue - total_cost
    return MarginData(
        gross_margin_pct=profit / margin_revenue * 100 if margin_revenue > 0 else 0.0,
        estimated_profit=profit,
        products=tuple(rows),
    )


def build_daily_trend(current: PeriodAggregate) -> Tuple[DailyTrend, ...]:
    return tuple(
        DailyTrend(date=day, revenue=d.revenue, units=d.units)
        for day, d in sorted(current.daily.items())
    )


def build_summary(current: PeriodAggregate, prior: PeriodAggregate) -> RetailSummary:
    return RetailSummary(
        total_revenue=current.total_revenue,
        prior_revenue=prior.total_revenue,
        revenue_change=trend_pct(current.total_revenue, prior.total_revenue),
        total_units=current.total_units,
        prior_units=prior.total_units,
        units_change=trend_pct(current.total_units, prior.total_units),
        unique_products=len(current.products),
        avg_product_ticket=average_ticket(current.total_revenue, current.total_units),
        total_discount=current.total_discount,
        discount_rate=discount_rate(current.total_discount, current.total_revenue),
        attachment_rate=attachment_rate(current.service_transactions, current.product_transactions),
    )
