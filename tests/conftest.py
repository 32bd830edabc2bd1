"""
Test Suite Configuration
"""
from datetime import date, datetime
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from retail_analytics.config import AnalyticsSettings
from retail_analytics.database import models as db
from retail_analytics.database.models import Base
from retail_analytics.ingestion.records import CatalogProduct
from retail_analytics.transformation.periods import ReportWindow


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    """Default thresholds, independent of the environment"""
    return AnalyticsSettings()


@pytest.fixture
def week_window() -> ReportWindow:
    return ReportWindow(start=date(2025, 3, 1), end=date(2025, 3, 7))


@pytest.fixture
def month_window() -> ReportWindow:
    return ReportWindow(start=date(2025, 3, 1), end=date(2025, 3, 30))


@pytest.fixture
def sample_catalog() -> list:
    """Catalog with cost data on two of three products"""
    return [
        CatalogProduct(name="Shampoo X", brand="Luxe", category="Hair Care",
                       retail_price=20.0, cost_price=8.0, quantity_on_hand=12),
        CatalogProduct(name="Styling Gel", brand="Luxe", category="Styling",
                       retail_price=15.0, cost_price=None, quantity_on_hand=4),
        CatalogProduct(name="Hair Oil", brand="Glow", category="Hair Care",
                       retail_price=30.0, cost_price=12.0, quantity_on_hand=30),
    ]


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
async def test_engine(tmp_path):
    """File-backed SQLite engine so concurrent sessions get their own connections"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'retail.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded_session_factory(session_factory) -> async_sessionmaker[AsyncSession]:
    """
    Seven-day scenario, 2025-03-01..2025-03-07 at location loc-1:
    - two legacy "Shampoo X" lines and one native line, 3 units / $60
    - a service + product transaction for stylist st-1
    - prior-period sales of "Hair Oil" and "Shampoo X"
    - lines at loc-2 that a loc-1 report must ignore
    """
    async with session_factory() as session:
        session.add_all([
            db.Product(name="Shampoo X", brand="Luxe", category="Hair Care",
                       retail_price=20, cost_price=8, quantity_on_hand=12, is_active=True),
            db.Product(name="Hair Oil", brand="Glow", category="Hair Care",
                       retail_price=30, cost_price=12, quantity_on_hand=30, is_active=True),
            db.Product(name="Old Wax", brand="Glow", category="Styling",
                       retail_price=10, cost_price=None, quantity_on_hand=5, is_active=False),

            db.LegacyTransactionItem(transaction_id="t-1", transaction_date=date(2025, 3, 2),
                                     location_id="loc-1", staff_id="st-1", item_name="Cut & Finish",
                                     item_type="SERVICE", quantity=1, total_amount=60),
            db.LegacyTransactionItem(transaction_id="t-1", transaction_date=date(2025, 3, 2),
                                     location_id="loc-1", staff_id="st-1", item_name="Shampoo X",
                                     item_category="Hair Care", item_type="Product", quantity=1,
                                     unit_price=20, total_amount=20),
            db.LegacyTransactionItem(transaction_id="t-2", transaction_date=date(2025, 3, 4),
                                     location_id="loc-1", staff_id="st-2", item_name="shampoo x",
                                     item_type="RETAIL", quantity=1, unit_price=20, total_amount=20),
            db.LegacyTransactionItem(transaction_id="t-3", transaction_date=date(2025, 3, 4),
                                     location_id="loc-2", staff_id="st-2", item_name="Hair Oil",
                                     item_type="product", quantity=5, total_amount=150),
            db.LegacyTransactionItem(transaction_id="t-0", transaction_date=date(2025, 2, 25),
                                     location_id="loc-1", staff_id="st-1", item_name="Hair Oil",
                                     item_type="Product", quantity=2, total_amount=60),
            db.LegacyTransactionItem(transaction_id="t-00", transaction_date=date(2025, 2, 26),
                                     location_id="loc-1", staff_id="st-1", item_name="Shampoo X",
                                     item_type="Product", quantity=2, total_amount=40),

            db.PosSale(id="sale-1", location_id="loc-1", staff_id="st-1",
                       created_at=datetime(2025, 3, 5, 14, 30)),
            db.PosSale(id="sale-2", location_id="loc-2", staff_id="st-2",
                       created_at=datetime(2025, 3, 5, 15, 0)),
            db.PosSaleItem(sale_id="sale-1", created_at=datetime(2025, 3, 5, 14, 30),
                           product_name="Shampoo X", quantity=1, unit_price=20, total_amount=20),
            db.PosSaleItem(sale_id="sale-2", created_at=datetime(2025, 3, 5, 15, 0),
                           product_name="Hair Oil", quantity=1, unit_price=30, total_amount=30),

            db.StaffMapping(source_staff_id="st-1", linked_person_id="person-1",
                            source_staff_name="Jo S.", branch_name="Downtown"),
            db.PersonProfile(person_id="person-1", full_name="Jo Smith", display_name="Jo",
                             photo_url="https://cdn.example.com/jo.png"),
        ])
        await session.commit()

    return session_factory
