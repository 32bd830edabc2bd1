"""
Retail Analytics Service

Entry point for one retail report request:

1. Current items, prior items, native items (both periods) and the catalog
   are fetched concurrently.
2. Raw records are normalized and aggregated per period.
3. Staff ids from the current period are resolved to people.
4. Everything is assembled into an immutable ReportResult.

Any fetch failure or timeout aborts the whole request: fetches still in
flight are cancelled and no partial report is ever returned.
"""

import asyncio
from typing import List, Optional, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retail_analytics.config import AnalyticsSettings, get_settings
from retail_analytics.exceptions import ReportTimeoutError
from retail_analytics.ingestion.normalizer import LineItemNormalizer
from retail_analytics.ingestion.records import LineItem, NativeSaleItem
from retail_analytics.ingestion.sources import (
    LocationSelector,
    RetailDataSource,
    SourceCapability,
    gather_or_cancel,
)
from retail_analytics.reporting.assembler import ReportAssembler
from retail_analytics.reporting.models import ReportResult
from retail_analytics.reporting.staff import StaffAttributionResolver
from retail_analytics.transformation.catalog import CatalogIndex
from retail_analytics.transformation.periods import DateLike, ReportWindow

logger = structlog.get_logger(__name__)

LEGACY_SOURCE = "legacy"
NATIVE_SOURCE = "native"


class RetailAnalyticsService:
    """
    Builds retail analytics reports from the record store.

    Example:
        await init_database()
        service = RetailAnalyticsService(get_session_factory())
        report = await service.build_report("2025-01-01", "2025-01-31", "loc-1,loc-2")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[AnalyticsSettings] = None,
    ):
        self.settings = settings or get_settings().analytics
        self.source = RetailDataSource(session_factory, self.settings)
        self.assembler = ReportAssembler()

    async def build_report(
        self,
        date_from: DateLike,
        date_to: DateLike,
        location: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ReportResult:
        """
        Build the report for [date_from, date_to] at `location`.

        Args:
            date_from: First day, ISO string or date
            date_to: Last day, inclusive
            location: Location id, comma-joined ids, or "all"
            timeout: Seconds before the request is abandoned, defaults to
                the configured fetch timeout (None waits indefinitely)

        Returns:
            ReportResult, the empty result when either date is missing

        Raises:
            StoreFetchError: A store read failed
            ReportTimeoutError: The timeout elapsed
            InvalidDateRangeError: Dates are malformed or reversed
        """
        window = ReportWindow.from_bounds(date_from, date_to)
        if window is None:
            logger.debug("Report dates not set, returning empty result")
            return ReportResult.empty()

        locations = LocationSelector.parse(location)
        timeout = timeout if timeout is not None else self.settings.fetch_timeout_seconds

        log = logger.bind(
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            location=locations.cache_key,
        )
        log.info("Building retail report")

        if timeout is None:
            return await self._build(window, locations)

        try:
            return await asyncio.wait_for(self._build(window, locations), timeout=timeout)
        except asyncio.TimeoutError as e:
            log.error("Retail report timed out", timeout=timeout)
            raise ReportTimeoutError(timeout) from e

    async def _build(self, window: ReportWindow, locations: LocationSelector) -> ReportResult:
        prior_window = window.prior()

        capability = await self.source.check_native_source()
        if capability is SourceCapability.UNSUPPORTED:
            logger.warning("Native point-of-sale tables not provisioned, using legacy items only")

        sources: Tuple[str, ...] = (LEGACY_SOURCE,)
        if capability is SourceCapability.SUPPORTED:
            sources += (NATIVE_SOURCE,)

        current_legacy, prior_legacy, current_native, prior_native, catalog = await gather_or_cancel(
            self.source.fetch_legacy_items(window, locations),
            self.source.fetch_legacy_items(prior_window, locations),
            self._fetch_native(capability, window, locations),
            self._fetch_native(capability, prior_window, locations),
            self.source.fetch_catalog(),
        )

        current_items = self._normalize(current_legacy, current_native, window)
        prior_items = self._normalize(prior_legacy, prior_native, prior_window)

        state = self.assembler.aggregate(window, current_items, prior_items, CatalogIndex(catalog))
        identities = await StaffAttributionResolver(self.source).resolve(state.staff_ids)

        return self.assembler.assemble(state, identities, sources)

    async def _fetch_native(
        self,
        capability: SourceCapability,
        window: ReportWindow,
        locations: LocationSelector,
    ) -> List[NativeSaleItem]:
        if capability is not SourceCapability.SUPPORTED:
            return []
        return await self.source.fetch_native_items(window, locations)

    def _normalize(self, legacy, native, window: ReportWindow) -> List[LineItem]:
        normalizer = LineItemNormalizer(self.settings.product_types, self.settings.service_types)
        return normalizer.normalize_all([*legacy, *native], window)
