"""
Test data builders
"""
from datetime import date
from typing import Optional

from retail_analytics.ingestion.records import LineItem, LineType


def make_item(
    name: str = "Shampoo X",
    line_type: LineType = LineType.PRODUCT,
    quantity: int = 1,
    total: float = 20.0,
    day: date = date(2025, 3, 3),
    tx: Optional[str] = "tx-1",
    staff: Optional[str] = None,
    discount: float = 0.0,
    unit_price: Optional[float] = None,
    category: Optional[str] = "Hair Care",
) -> LineItem:
    """Canonical line item with sensible defaults"""
    return LineItem(
        name=name,
        category=category,
        line_type=line_type,
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
        total_amount=total,
        transaction_date=day,
        transaction_id=tx,
        staff_id=staff,
    )
