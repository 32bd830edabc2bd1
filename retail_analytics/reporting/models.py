"""
Report Result Models

The immutable value returned for one retail analytics query. Every row
type is a frozen dataclass and every collection is a tuple, so a result can
be cached and shared by the caller without defensive copies.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class RedFlagType(str, Enum):
    """Kinds of product anomalies"""
    DECLINING = "declining"
    HEAVY_DISCOUNT = "heavy_discount"
    SLOW_MOVER = "slow_mover"


class Severity(str, Enum):
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class RetailSummary:
    total_revenue: float = 0.0
    prior_revenue: float = 0.0
    revenue_change: float = 0.0
    total_units: int = 0
    prior_units: int = 0
    units_change: float = 0.0
    unique_products: int = 0
    avg_product_ticket: float = 0.0
    total_discount: float = 0.0
    discount_rate: float = 0.0
    attachment_rate: int = 0


@dataclass(frozen=True)
class ProductRow:
    name: str
    category: Optional[str]
    units_sold: int
    revenue: float
    avg_price: float
    discount: float
    discount_rate: float
    prior_revenue: float
    revenue_trend: float
    margin: Optional[float] = None
    last_sold: Optional[date] = None


@dataclass(frozen=True)
class RedFlag:
    product: str
    type: RedFlagType
    label: str
    severity: Severity
    detail: str


@dataclass(frozen=True)
class CategoryRow:
    category: str
    revenue: float
    units: int
    product_count: int
    avg_price: float
    pct_of_total: float


@dataclass(frozen=True)
class BrandRow:
    brand: str
    revenue: float
    prior_revenue: float
    revenue_trend: float
    units_sold: int
    product_count: int
    avg_price: float
    margin: float
    pct_of_total: float
    top_product: str
    stale_products: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DailyTrend:
    date: date
    revenue: float
    units: int


@dataclass(frozen=True)
class StaffRetailRow:
    staff_id: str
    user_id: Optional[str]
    name: str
    photo_url: Optional[str]
    branch_name: Optional[str]
    product_revenue: float
    units_sold: int
    attachment_rate: int
    avg_ticket: float


@dataclass(frozen=True)
class MarginRow:
    name: str
    revenue: float
    cost: float
    margin: float
    profit: float


@dataclass(frozen=True)
class MarginData:
    gross_margin_pct: float
    estimated_profit: float
    products: Tuple[MarginRow, ...] = ()


@dataclass(frozen=True)
class DeadStockRow:
    name: str
    brand: str
    category: str
    retail_price: float
    quantity_on_hand: int
    last_sold_date: Optional[date]
    days_stale: int
    capital_tied_up: float


@dataclass(frozen=True)
class PeriodInfo:
    start: date
    end: date
    span_days: int


@dataclass(frozen=True)
class ReportResult:
    """
    Complete retail analytics report for one (date range, location) query.

    `margin_data` is None when the catalog carries no cost prices at all.
    `period` and `prior_period` are None only on the empty result.
    """
    summary: RetailSummary = field(default_factory=RetailSummary)
    products: Tuple[ProductRow, ...] = ()
    red_flags: Tuple[RedFlag, ...] = ()
    categories: Tuple[CategoryRow, ...] = ()
    daily_trend: Tuple[DailyTrend, ...] = ()
    staff_retail: Tuple[StaffRetailRow, ...] = ()
    margin_data: Optional[MarginData] = None
    brand_performance: Tuple[BrandRow, ...] = ()
    dead_stock: Tuple[DeadStockRow, ...] = ()
    period: Optional[PeriodInfo] = None
    prior_period: Optional[PeriodInfo] = None
    sources: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "ReportResult":
        """All-zero summary and empty collections."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.period is None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
