"""
Integration Tests - Retail Analytics Service

Runs the full pipeline against a seeded SQLite store.
"""
import asyncio
from datetime import date, datetime

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from retail_analytics.config import AnalyticsSettings
from retail_analytics.database import models as db
from retail_analytics.database.models import Base
from retail_analytics.exceptions import InvalidDateRangeError, ReportTimeoutError, StoreFetchError
from retail_analytics.ingestion.sources import LocationSelector, RetailDataSource, SourceCapability
from retail_analytics.reporting.export import export_facet
from retail_analytics.reporting.models import ReportResult
from retail_analytics.service import RetailAnalyticsService
from retail_analytics.transformation.periods import ReportWindow


@pytest.fixture
def service(seeded_session_factory, analytics_settings) -> RetailAnalyticsService:
    return RetailAnalyticsService(seeded_session_factory, analytics_settings)


class TestSingleLocationReport:
    """loc-1 report for the first week of March"""

    async def test_products(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        shampoo, = result.products
        assert shampoo.name == "Shampoo X"
        assert shampoo.units_sold == 3
        assert shampoo.revenue == pytest.approx(60.0)
        assert shampoo.prior_revenue == pytest.approx(40.0)
        assert shampoo.revenue_trend == pytest.approx(50.0)
        assert shampoo.category == "Hair Care"
        assert shampoo.margin == pytest.approx(60.0)

    async def test_summary(self, service):
        summary = (await service.build_report("2025-03-01", "2025-03-07", "loc-1")).summary

        assert summary.total_revenue == pytest.approx(60.0)
        assert summary.prior_revenue == pytest.approx(100.0)
        assert summary.revenue_change == pytest.approx(-40.0)
        assert summary.total_units == 3
        assert summary.prior_units == 4
        assert summary.units_change == pytest.approx(-25.0)
        assert summary.attachment_rate == 100

    async def test_staff_leaderboard(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        jo, other = result.staff_retail
        assert jo.staff_id == "st-1"
        assert jo.name == "Jo"
        assert jo.user_id == "person-1"
        assert jo.photo_url == "https://cdn.example.com/jo.png"
        assert jo.branch_name == "Downtown"
        assert jo.product_revenue == pytest.approx(40.0)
        assert jo.units_sold == 2
        assert jo.attachment_rate == 100

        assert other.staff_id == "st-2"
        assert other.name == "Unknown"
        assert other.product_revenue == pytest.approx(20.0)
        assert other.attachment_rate == 0

    async def test_dead_stock_margin_and_brands(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        hair_oil, = result.dead_stock
        assert hair_oil.name == "Hair Oil"
        assert hair_oil.last_sold_date == date(2025, 2, 28)
        assert hair_oil.days_stale == 7
        assert hair_oil.capital_tied_up == pytest.approx(900.0)

        margin_row, = result.margin_data.products
        assert margin_row.cost == pytest.approx(24.0)
        assert margin_row.profit == pytest.approx(36.0)
        assert result.margin_data.gross_margin_pct == pytest.approx(60.0)

        luxe, = result.brand_performance
        assert luxe.brand == "Luxe"
        assert luxe.revenue_trend == pytest.approx(50.0)

    async def test_daily_trend_and_flags(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        assert [(d.date, d.revenue, d.units) for d in result.daily_trend] == [
            (date(2025, 3, 2), 20.0, 1),
            (date(2025, 3, 4), 20.0, 1),
            (date(2025, 3, 5), 20.0, 1),
        ]
        assert result.red_flags == ()
        assert result.sources == ("legacy", "native")

    async def test_accepts_date_objects(self, service):
        by_string = await service.build_report("2025-03-01", "2025-03-07", "loc-1")
        by_date = await service.build_report(date(2025, 3, 1), date(2025, 3, 7), "loc-1")

        assert by_string == by_date

    async def test_export_from_report(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        export = export_facet(result, "staff", today=date(2025, 3, 8))

        assert export.rows == 2
        assert export.content.splitlines()[1].startswith('"1","Jo","Downtown","40.00"')


class TestLocationSelection:
    """Location filters"""

    async def test_all_locations(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "all")

        by_name = {p.name: p for p in result.products}
        assert by_name["Hair Oil"].units_sold == 6
        assert by_name["Hair Oil"].revenue == pytest.approx(180.0)
        assert by_name["Hair Oil"].revenue_trend == pytest.approx(200.0)
        assert result.products[0].name == "Hair Oil"
        assert result.summary.total_revenue == pytest.approx(240.0)
        assert result.dead_stock == ()

    async def test_location_list_matches_all(self, service):
        everything = await service.build_report("2025-03-01", "2025-03-07", None)
        listed = await service.build_report("2025-03-01", "2025-03-07", "loc-1, loc-2")

        assert listed.summary == everything.summary

    async def test_other_location_only(self, service):
        result = await service.build_report("2025-03-01", "2025-03-07", "loc-2")

        hair_oil, = result.products
        assert hair_oil.revenue == pytest.approx(180.0)
        assert result.summary.prior_revenue == 0.0
        assert result.summary.revenue_change == 100.0


class TestRequestHandling:
    """Missing dates, failures and timeouts"""

    async def test_missing_dates_give_empty_result(self, service):
        assert await service.build_report(None, "2025-03-07") == ReportResult.empty()
        assert await service.build_report("2025-03-01", "") == ReportResult.empty()

    async def test_reversed_dates(self, service):
        with pytest.raises(InvalidDateRangeError):
            await service.build_report("2025-03-07", "2025-03-01")

    async def test_fetch_failure_aborts_report(self, seeded_session_factory, analytics_settings):
        async with seeded_session_factory() as session:
            await session.execute(text("DROP TABLE legacy_transaction_items"))
            await session.commit()

        service = RetailAnalyticsService(seeded_session_factory, analytics_settings)

        with pytest.raises(StoreFetchError) as exc:
            await service.build_report("2025-03-01", "2025-03-07", "loc-1")
        assert exc.value.source == "legacy transaction items"

    async def test_timeout(self, service):
        async def slow_catalog():
            await asyncio.sleep(5)
            return []

        service.source.fetch_catalog = slow_catalog

        with pytest.raises(ReportTimeoutError):
            await service.build_report("2025-03-01", "2025-03-07", "loc-1", timeout=0.05)

    async def test_fetch_failure_cancels_other_fetches(self, seeded_session_factory, analytics_settings):
        async with seeded_session_factory() as session:
            await session.execute(text("DROP TABLE legacy_transaction_items"))
            await session.commit()

        service = RetailAnalyticsService(seeded_session_factory, analytics_settings)
        catalog_cancelled = asyncio.Event()

        async def slow_catalog():
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                catalog_cancelled.set()
                raise
            return []

        service.source.fetch_catalog = slow_catalog

        with pytest.raises(StoreFetchError):
            await service.build_report("2025-03-01", "2025-03-07", "loc-1")
        assert catalog_cancelled.is_set()

    async def test_small_pages_give_same_report(self, seeded_session_factory, service):
        paged = RetailAnalyticsService(
            seeded_session_factory,
            AnalyticsSettings(page_size=1, header_chunk_size=1),
        )

        expected = await service.build_report("2025-02-01", "2025-03-07", "all")
        result = await paged.build_report("2025-02-01", "2025-03-07", "all")

        assert result == expected


class TestLegacyOnlyDeployment:
    """Stores without the native point-of-sale tables"""

    @pytest.fixture
    async def legacy_only_factory(self, tmp_path):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'legacy.db'}")
        tables = [
            db.LegacyTransactionItem.__table__,
            db.Product.__table__,
            db.StaffMapping.__table__,
            db.PersonProfile.__table__,
        ]
        async with engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=tables))

        factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            session.add_all([
                db.Product(name="Shampoo X", brand="Luxe", category="Hair Care",
                           retail_price=20, cost_price=8, quantity_on_hand=12, is_active=True),
                db.LegacyTransactionItem(transaction_id="t-1", transaction_date=date(2025, 3, 2),
                                         location_id="loc-1", staff_id="st-1", item_name="Shampoo X",
                                         item_type="Product", quantity=2, total_amount=40),
            ])
            await session.commit()

        yield factory

        await engine.dispose()

    async def test_capability_check(self, legacy_only_factory, seeded_session_factory, analytics_settings):
        legacy_only = RetailDataSource(legacy_only_factory, analytics_settings)
        full = RetailDataSource(seeded_session_factory, analytics_settings)

        assert await legacy_only.check_native_source() is SourceCapability.UNSUPPORTED
        assert await full.check_native_source() is SourceCapability.SUPPORTED

    async def test_report_from_legacy_only(self, legacy_only_factory, analytics_settings):
        service = RetailAnalyticsService(legacy_only_factory, analytics_settings)

        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        assert result.sources == ("legacy",)
        shampoo, = result.products
        assert shampoo.units_sold == 2
        assert shampoo.revenue == pytest.approx(40.0)


class TestRetailDataSource:
    """Direct source reads"""

    async def test_native_items_joined_to_headers(self, seeded_session_factory, analytics_settings, week_window):
        source = RetailDataSource(seeded_session_factory, analytics_settings)

        items = await source.fetch_native_items(week_window, LocationSelector.parse("loc-1"))

        joined = [i for i in items if i.sale_date is not None]
        assert len(items) == 2
        assert [(i.sale_id, i.sale_date, i.staff_id) for i in joined] == [("sale-1", date(2025, 3, 5), "st-1")]

    async def test_inactive_products_excluded(self, seeded_session_factory, analytics_settings):
        source = RetailDataSource(seeded_session_factory, analytics_settings)

        catalog = await source.fetch_catalog()

        assert sorted(p.name for p in catalog) == ["Hair Oil", "Shampoo X"]

    async def test_legacy_window_is_inclusive(self, seeded_session_factory, analytics_settings):
        source = RetailDataSource(seeded_session_factory, analytics_settings)

        items = await source.fetch_legacy_items(
            ReportWindow(date(2025, 2, 25), date(2025, 2, 26)), LocationSelector.parse("all"),
        )

        assert sorted(i.transaction_id for i in items) == ["t-0", "t-00"]


class TestNativeItemDating:
    """Native items are dated by their sale header, not their own timestamp"""

    @pytest.fixture
    async def skewed_factory(self, seeded_session_factory):
        async with seeded_session_factory() as session:
            session.add_all([
                # header inside the window, item stamped just before it
                db.PosSale(id="sale-3", location_id="loc-1", staff_id="st-1",
                           created_at=datetime(2025, 3, 1, 0, 10)),
                db.PosSaleItem(sale_id="sale-3", created_at=datetime(2025, 2, 28, 23, 50),
                               product_name="Shampoo X", quantity=1, unit_price=20, total_amount=20),
                # header in the prior window, item stamped just inside the current one
                db.PosSale(id="sale-4", location_id="loc-1", staff_id="st-1",
                           created_at=datetime(2025, 2, 28, 23, 55)),
                db.PosSaleItem(sale_id="sale-4", created_at=datetime(2025, 3, 1, 0, 5),
                               product_name="Hair Oil", quantity=1, unit_price=30, total_amount=30),
            ])
            await session.commit()
        return seeded_session_factory

    async def test_header_date_decides_period(self, skewed_factory, analytics_settings):
        service = RetailAnalyticsService(skewed_factory, analytics_settings)

        result = await service.build_report("2025-03-01", "2025-03-07", "loc-1")

        shampoo, = result.products
        assert shampoo.units_sold == 4
        assert shampoo.revenue == pytest.approx(80.0)
        assert result.summary.prior_revenue == pytest.approx(130.0)
        assert [d.name for d in result.dead_stock] == ["Hair Oil"]
