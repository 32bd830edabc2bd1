"""
Record Store Sources

Read-only access to the sales feeds and master data through async
SQLAlchemy. Every multi-row read is paginated and ordered by primary key;
every concurrent read opens its own session. Driver failures surface as
StoreFetchError and are never retried here.
"""

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import structlog
from pydantic import BaseModel
from sqlalchemy import Select, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retail_analytics.config import AnalyticsSettings, get_settings
from retail_analytics.database import models as db
from retail_analytics.exceptions import StoreFetchError
from retail_analytics.ingestion.pagination import fetch_all_pages
from retail_analytics.ingestion.records import (
    CatalogProduct,
    LegacyTransactionItem,
    NativeSaleItem,
    PersonProfile,
    SaleHeader,
    StaffMapping,
)
from retail_analytics.transformation.periods import ReportWindow

logger = structlog.get_logger(__name__)

R = TypeVar("R", bound=BaseModel)

NATIVE_ITEM_PADDING = timedelta(days=1)


class SourceCapability(str, Enum):
    """Whether an optional sales feed is provisioned in this deployment"""
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class LocationSelector:
    """
    Location filter: a single id, several ids, or every location.

    `location_ids` is None for "all".
    """
    location_ids: Optional[Tuple[str, ...]] = None

    ALL = "all"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LocationSelector":
        """Accepts None, "all", "loc-1" or "loc-1,loc-2"."""
        if value is None or not str(value).strip() or str(value).strip().lower() == cls.ALL:
            return cls()
        ids = tuple(dict.fromkeys(part.strip() for part in str(value).split(",") if part.strip()))
        return cls(location_ids=ids or None)

    @property
    def is_all(self) -> bool:
        return self.location_ids is None

    @property
    def cache_key(self) -> str:
        return self.ALL if self.is_all else ",".join(self.location_ids)


def _chunks(values: Sequence[Any], size: int) -> List[Sequence[Any]]:
    return [values[i:i + size] for i in range(0, len(values), size)]


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure cancels every sibling still running and is re-raised
    as itself, not wrapped in an ExceptionGroup.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(aw) for aw in aws]
    except ExceptionGroup as group:
        raise group.exceptions[0]
    return [task.result() for task in tasks]


class RetailDataSource:
    """
    Async reader for every table the retail report consumes.

    Example:
        source = RetailDataSource(get_session_factory())
        items = await source.fetch_legacy_items(window, LocationSelector.parse("all"))
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[AnalyticsSettings] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings().analytics

    async def _fetch_paged(self, source: str, query: Select, record: Type[R]) -> List[R]:
        """Run `query` page by page in one session and validate each row into `record`."""
        async with self.session_factory() as session:

            async def fetch_page(offset: int, limit: int) -> List[R]:
                try:
                    result = await session.execute(query.offset(offset).limit(limit))
                    rows = result.scalars().all()
                except SQLAlchemyError as e:
                    logger.error("Store fetch failed", source=source, offset=offset, error=str(e))
                    raise StoreFetchError(source, str(e), offset=offset) from e
                return [record.model_validate(row) for row in rows]

            return await fetch_all_pages(fetch_page, page_size=self.settings.page_size, source=source)

    async def _fetch_by_ids(
        self,
        source: str,
        model: Type[db.Base],
        column: Any,
        ids: Sequence[str],
        record: Type[R],
        order_by: Any,
    ) -> List[R]:
        """Look rows up by id in bounded chunks, issued concurrently."""
        unique_ids = sorted(set(ids))
        if not unique_ids:
            return []

        chunks = _chunks(unique_ids, self.settings.header_chunk_size)
        results = await gather_or_cancel(*(
            self._fetch_paged(source, select(model).where(column.in_(chunk)).order_by(order_by), record)
            for chunk in chunks
        ))
        rows = [row for chunk_rows in results for row in chunk_rows]
        logger.debug("Chunked lookup complete", source=source, ids=len(unique_ids), chunks=len(chunks), rows=len(rows))
        return rows

    async def check_native_source(self) -> SourceCapability:
        """Check that both native point-of-sale tables exist."""
        tables = (db.PosSaleItem.__tablename__, db.PosSale.__tablename__)
        try:
            async with self.session_factory() as session:
                conn = await session.connection()
                present = await conn.run_sync(
                    lambda sync_conn: all(inspect(sync_conn).has_table(t) for t in tables)
                )
        except SQLAlchemyError as e:
            logger.error("Native source check failed", error=str(e))
            raise StoreFetchError("native source schema", str(e)) from e

        return SourceCapability.SUPPORTED if present else SourceCapability.UNSUPPORTED

    async def fetch_legacy_items(
        self,
        window: ReportWindow,
        locations: LocationSelector,
    ) -> List[LegacyTransactionItem]:
        row = db.LegacyTransactionItem
        query = (
            select(row)
            .where(row.transaction_date >= window.start, row.transaction_date <= window.end)
            .order_by(row.id)
        )
        if not locations.is_all:
            query = query.where(row.location_id.in_(locations.location_ids))

        items = await self._fetch_paged("legacy transaction items", query, LegacyTransactionItem)
        logger.info("Fetched legacy items", rows=len(items), start=window.start.isoformat(), end=window.end.isoformat())
        return items

    async def fetch_native_items(
        self,
        window: ReportWindow,
        locations: LocationSelector,
    ) -> List[NativeSaleItem]:
        """
        Native sale items in the window, joined to their sale headers.

        Items come first, selected by their own timestamp with a one-day
        margin on each side so a skewed item clock cannot hide a sale whose
        header is in the window. Headers are then looked up in chunks of
        `header_chunk_size` ids. The header date decides window membership:
        the normalizer drops joined items dated outside the window, and items
        whose header is missing or belongs to another location are returned
        unjoined and dropped there too.
        """
        row = db.PosSaleItem
        lower, upper = window.datetime_bounds(padding=NATIVE_ITEM_PADDING)
        query = (
            select(row)
            .where(row.created_at >= lower, row.created_at < upper)
            .order_by(row.id)
        )
        items = await self._fetch_paged("native sale items", query, NativeSaleItem)
        if not items:
            return []

        headers = await self.fetch_sale_headers([item.sale_id for item in items], locations)
        by_id: Dict[str, SaleHeader] = {h.id: h for h in headers}

        joined = [
            item.with_header(by_id[item.sale_id]) if item.sale_id in by_id else item
            for item in items
        ]
        logger.info(
            "Fetched native items",
            rows=len(items),
            headers=len(by_id),
            unresolved=sum(1 for item in items if item.sale_id not in by_id),
        )
        return joined

    async def fetch_sale_headers(self, sale_ids: Sequence[str], locations: LocationSelector) -> List[SaleHeader]:
        headers = await self._fetch_by_ids(
            "sale headers", db.PosSale, db.PosSale.id, sale_ids, SaleHeader, db.PosSale.id,
        )
        if locations.is_all:
            return headers
        return [h for h in headers if h.location_id in locations.location_ids]

    async def fetch_catalog(self) -> List[CatalogProduct]:
        row = db.Product
        query = select(row).where(row.is_active.is_(True)).order_by(row.id)
        products = await self._fetch_paged("product catalog", query, CatalogProduct)
        logger.info("Fetched product catalog", rows=len(products))
        return products

    async def fetch_staff_mappings(self, staff_ids: Sequence[str]) -> List[StaffMapping]:
        return await self._fetch_by_ids(
            "staff mappings",
            db.StaffMapping,
            db.StaffMapping.source_staff_id,
            staff_ids,
            StaffMapping,
            db.StaffMapping.id,
        )

    async def fetch_profiles(self, person_ids: Sequence[str]) -> List[PersonProfile]:
        return await self._fetch_by_ids(
            "person profiles",
            db.PersonProfile,
            db.PersonProfile.person_id,
            person_ids,
            PersonProfile,
            db.PersonProfile.person_id,
        )
