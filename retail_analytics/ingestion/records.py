"""
Record Variants

Raw rows as they arrive from the record store, plus the canonical line
item every downstream stage works on. The two sales feeds are modelled as
explicit variants of one tagged union; only the normalizer looks at them.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LineType(str, Enum):
    """Classification of a canonical line item"""
    PRODUCT = "product"
    SERVICE = "service"
    OTHER = "other"


class _StoreRow(BaseModel):
    """Rows are immutable and may be validated straight from ORM objects."""

    model_config = ConfigDict(from_attributes=True, frozen=True)


# =============================================================================
# SALES FEEDS
# =============================================================================

class LegacyTransactionItem(_StoreRow):
    """Dated, typed line item from the legacy POS integration"""

    source: Literal["legacy"] = "legacy"
    item_name: Optional[str] = None
    item_category: Optional[str] = None
    item_type: Optional[str] = None
    quantity: Optional[int] = None
    unit_price: Optional[float] = None
    discount: Optional[float] = None
    total_amount: Optional[float] = None
    transaction_date: date
    transaction_id: Optional[str] = None
    staff_id: Optional[str] = None
    location_id: Optional[str] = None


class SaleHeader(_StoreRow):
    """Native point-of-sale sale header"""

    id: str
    location_id: Optional[str] = None
    staff_id: Optional[str] = None
    created_at: datetime


class NativeSaleItem(_StoreRow):
    """
    Native point-of-sale item.

    The header fields (`sale_date`, `staff_id`, `location_id`) are empty
    until the item has been joined against its SaleHeader.
    """

    source: Literal["native"] = "native"
    id: int
    sale_id: str
    product_name: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = None
    unit_price: Optional[float] = None
    discount: Optional[float] = None
    total_amount: Optional[float] = None
    sale_date: Optional[date] = None
    staff_id: Optional[str] = None
    location_id: Optional[str] = None

    def with_header(self, header: SaleHeader) -> "NativeSaleItem":
        """Copy of this item carrying the header's date, staff and location."""
        return self.model_copy(update={
            "sale_date": header.created_at.date(),
            "staff_id": header.staff_id,
            "location_id": header.location_id,
        })


RawSaleRecord = Union[LegacyTransactionItem, NativeSaleItem]


# =============================================================================
# MASTER DATA
# =============================================================================

class CatalogProduct(_StoreRow):
    """Active catalog entry"""

    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    retail_price: Optional[float] = None
    cost_price: Optional[float] = None
    quantity_on_hand: Optional[int] = Field(default=None)


class StaffMapping(_StoreRow):
    source_staff_id: str
    linked_person_id: Optional[str] = None
    source_staff_name: Optional[str] = None
    branch_name: Optional[str] = None


class PersonProfile(_StoreRow):
    person_id: str
    full_name: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


# =============================================================================
# CANONICAL
# =============================================================================

@dataclass(frozen=True)
class LineItem:
    """Source-independent line item"""
    name: str
    line_type: LineType
    quantity: int
    discount: float
    total_amount: float
    transaction_date: date
    transaction_id: Optional[str]
    category: Optional[str] = None
    unit_price: Optional[float] = None
    staff_id: Optional[str] = None
    source: str = "legacy"

    @property
    def is_product(self) -> bool:
        return self.line_type is LineType.PRODUCT

    @property
    def is_service(self) -> bool:
        return self.line_type is LineType.SERVICE
