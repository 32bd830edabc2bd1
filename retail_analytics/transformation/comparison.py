"""
Prior-Period Comparison

Trend deltas between the current period and the equal-length period right
before it. Both periods are aggregated independently; their aggregates are
compared here and never merged.
"""

from dataclasses import dataclass
from typing import Dict

from retail_analytics.transformation.aggregation import PeriodAggregate


def trend_pct(current: float, prior: float) -> float:
    """
    Percent change from `prior` to `current`.

    A prior value of zero cannot be divided by: growth from nothing is
    reported as +100, and no activity in either period as 0.
    """
    if prior > 0:
        return (current - prior) / prior * 100
    if current > 0:
        return 100.0
    return 0.0


@dataclass(frozen=True)
class ProductTrend:
    name: str
    revenue: float
    prior_revenue: float
    trend: float


def compare_products(current: PeriodAggregate, prior: PeriodAggregate) -> Dict[str, ProductTrend]:
    """Revenue trend for every product sold in the current period, by canonical name."""
    trends: Dict[str, ProductTrend] = {}
    for key, product in current.products.items():
        prior_product = prior.products.get(key)
        prior_revenue = prior_product.revenue if prior_product else 0.0
        trends[key] = ProductTrend(
            name=product.name,
            revenue=product.revenue,
            prior_revenue=prior_revenue,
            trend=trend_pct(product.revenue, prior_revenue),
        )
    return trends
