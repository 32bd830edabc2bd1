"""
Database Models - Collaborator Tables

Read-only mappings of the tables the retail analytics pipeline consumes.
Nothing in this package writes to them; they are owned by the booking,
point-of-sale and inventory systems.

Sales sources:
- LegacyTransactionItem: line items synced from the legacy POS integration
- PosSaleItem / PosSale: native point-of-sale items and their sale headers

Master data:
- Product: active retail catalog (cost, price, brand, stock on hand)
- StaffMapping: legacy staff ids linked to people
- PersonProfile: display names and photos
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# SALES SOURCES
# =============================================================================

class LegacyTransactionItem(Base):
    """
    Line item from the legacy POS integration feed.

    `item_type` arrives in several casings ("Product", "RETAIL", "service").
    """

    __tablename__ = "legacy_transaction_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    location_id: Mapped[Optional[str]] = mapped_column(String(64))
    staff_id: Mapped[Optional[str]] = mapped_column(String(64))

    item_name: Mapped[Optional[str]] = mapped_column(String(255))
    item_category: Mapped[Optional[str]] = mapped_column(String(100))
    item_type: Mapped[Optional[str]] = mapped_column(String(50))
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    discount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    __table_args__ = (
        Index("idx_legacy_items_date", "transaction_date"),
        Index("idx_legacy_items_location", "location_id", "transaction_date"),
    )


class PosSale(Base):
    """Native point-of-sale sale header"""

    __tablename__ = "pos_sales"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    location_id: Mapped[Optional[str]] = mapped_column(String(64))
    staff_id: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class PosSaleItem(Base):
    """
    Native point-of-sale line item.

    Always a retail product sale. Date, staff and location live on the
    sale header and must be joined in.
    """

    __tablename__ = "pos_sale_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[str] = mapped_column(ForeignKey("pos_sales.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    product_name: Mapped[Optional[str]] = mapped_column(String(255))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    discount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    __table_args__ = (
        Index("idx_pos_items_created", "created_at"),
    )


# =============================================================================
# MASTER DATA
# =============================================================================

class Product(Base):
    """Retail product catalog entry. `name` is matched case-insensitively."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    retail_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    cost_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    quantity_on_hand: Mapped[Optional[int]] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class StaffMapping(Base):
    """Link between a legacy-system staff id and a person"""

    __tablename__ = "staff_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_staff_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    linked_person_id: Mapped[Optional[str]] = mapped_column(String(64))
    source_staff_name: Mapped[Optional[str]] = mapped_column(String(255))
    branch_name: Mapped[Optional[str]] = mapped_column(String(255))


class PersonProfile(Base):
    """Display profile for a person"""

    __tablename__ = "person_profiles"

    person_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    photo_url: Mapped[Optional[str]] = mapped_column(String(500))
