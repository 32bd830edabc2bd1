"""
Aggregation Core

Single forward pass over the canonical line items of one period, folding
them into per-product, per-day and per-staff accumulators. The
accumulators are created inside aggregate_line_items() and handed back in
a PeriodAggregate; nothing is kept between calls, so running the fold twice
over the same items yields equal aggregates.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

import structlog

from retail_analytics.ingestion.records import LineItem
from retail_analytics.transformation.catalog import canonical_name

logger = structlog.get_logger(__name__)


@dataclass
class ProductAggregate:
    """Running totals for one product, keyed by canonical name"""
    name: str
    category: Optional[str] = None
    units_sold: int = 0
    revenue: float = 0.0
    discount: float = 0.0
    unit_prices: List[float] = field(default_factory=list)
    daily_revenue: Dict[date, float] = field(default_factory=dict)
    last_sold: Optional[date] = None

    @property
    def avg_price(self) -> float:
        return self.revenue / self.units_sold if self.units_sold > 0 else 0.0


@dataclass
class DailyAggregate:
    revenue: float = 0.0
    units: int = 0


@dataclass
class StaffAggregate:
    """Retail totals and transaction sets for one staff id"""
    revenue: float = 0.0
    units: int = 0
    service_transactions: Set[str] = field(default_factory=set)
    product_transactions: Set[str] = field(default_factory=set)


@dataclass
class PeriodAggregate:
    """Everything one aggregation pass produces"""
    products: Dict[str, ProductAggregate] = field(default_factory=dict)
    daily: Dict[date, DailyAggregate] = field(default_factory=dict)
    staff: Dict[str, StaffAggregate] = field(default_factory=dict)
    service_transactions: Set[str] = field(default_factory=set)
    product_transactions: Set[str] = field(default_factory=set)
    total_revenue: float = 0.0
    total_units: int = 0
    total_discount: float = 0.0

    def product(self, name: Optional[str]) -> Optional[ProductAggregate]:
        return self.products.get(canonical_name(name))

    def revenue_for(self, name: Optional[str]) -> float:
        product = self.product(name)
        return product.revenue if product else 0.0

    def sold_names(self) -> Set[str]:
        """Canonical names of every product with at least one sale line."""
        return set(self.products)


def aggregate_line_items(items: Iterable[LineItem]) -> PeriodAggregate:
    """
    Fold canonical line items into one PeriodAggregate.

    For every item the transaction day is registered in the daily series and
    its transaction id is recorded in the service or product set. Revenue,
    units and discount are only ever taken from product lines.
    """
    products: Dict[str, ProductAggregate] = {}
    daily: Dict[date, DailyAggregate] = {}
    staff: Dict[str, StaffAggregate] = {}
    service_txs: Set[str] = set()
    product_txs: Set[str] = set()
    total_revenue = 0.0
    total_units = 0
    total_discount = 0.0
    line_count = 0

    for item in items:
        line_count += 1
        tx_id = item.transaction_id
        day = daily.setdefault(item.transaction_date, DailyAggregate())

        if item.is_service and tx_id:
            service_txs.add(tx_id)
        if item.is_product and tx_id:
            product_txs.add(tx_id)

        if item.staff_id:
            member = staff.setdefault(item.staff_id, StaffAggregate())
            if item.is_service and tx_id:
                member.service_transactions.add(tx_id)
            if item.is_product:
                member.revenue += item.total_amount
                member.units += item.quantity
                if tx_id:
                    member.product_transactions.add(tx_id)

        if not item.is_product:
            continue

        total_revenue += item.total_amount
        total_units += item.quantity
        total_discount += item.discount

        day.revenue += item.total_amount
        day.units += item.quantity

        key = canonical_name(item.name)
        product = products.get(key)
        if product is None:
            product = products[key] = ProductAggregate(name=item.name, category=item.category)
        elif product.category is None:
            product.category = item.category

        product.units_sold += item.quantity
        product.revenue += item.total_amount
        product.discount += item.discount
        product.unit_prices.append(
            item.unit_price if item.unit_price is not None else item.total_amount / item.quantity
        )
        product.daily_revenue[item.transaction_date] = (
            product.daily_revenue.get(item.transaction_date, 0.0) + item.total_amount
        )
        if product.last_sold is None or item.transaction_date > product.last_sold:
            product.last_sold = item.transaction_date

    logger.debug(
        "Aggregated line items",
        lines=line_count,
        products=len(products),
        days=len(daily),
        staff=len(staff),
    )

    return PeriodAggregate(
        products=products,
        daily=daily,
        staff=staff,
        service_transactions=service_txs,
        product_transactions=product_txs,
        total_revenue=total_revenue,
        total_units=total_units,
        total_discount=total_discount,
    )
