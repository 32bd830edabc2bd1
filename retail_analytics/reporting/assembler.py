"""
Report Assembler

Composes aggregation, comparison, derived metrics, red flags, dead stock
and staff attribution into one immutable ReportResult. This module never
touches the record store; RetailAnalyticsService feeds it.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

import structlog

from retail_analytics.ingestion.records import CatalogProduct, LineItem, PersonProfile, StaffMapping
from retail_analytics.quality.anomaly_detector import RedFlagDetector
from retail_analytics.quality.dead_stock import detect_dead_stock
from retail_analytics.reporting import metrics
from retail_analytics.reporting.models import PeriodInfo, ReportResult
from retail_analytics.reporting.staff import StaffIdentity, build_staff_rows, resolve_identities
from retail_analytics.transformation.aggregation import PeriodAggregate, aggregate_line_items
from retail_analytics.transformation.catalog import CatalogIndex
from retail_analytics.transformation.comparison import compare_products
from retail_analytics.transformation.periods import ReportWindow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AggregatedState:
    """Both period aggregates plus the catalog they are read against"""
    window: ReportWindow
    current: PeriodAggregate
    prior: PeriodAggregate
    catalog: CatalogIndex

    @property
    def staff_ids(self) -> Sequence[str]:
        return list(self.current.staff)


def _period_info(window: ReportWindow) -> PeriodInfo:
    return PeriodInfo(start=window.start, end=window.end, span_days=window.span_days)


class ReportAssembler:
    """
    Two-step report construction.

    Example:
        assembler = ReportAssembler()
        state = assembler.aggregate(window, current_items, prior_items, catalog)
        identities = await StaffAttributionResolver(source).resolve(state.staff_ids)
        result = assembler.assemble(state, identities)
    """

    def __init__(self, detector: Optional[RedFlagDetector] = None):
        self.detector = detector or RedFlagDetector()

    def aggregate(
        self,
        window: ReportWindow,
        current_items: Iterable[LineItem],
        prior_items: Iterable[LineItem],
        catalog: CatalogIndex,
    ) -> AggregatedState:
        return AggregatedState(
            window=window,
            current=aggregate_line_items(current_items),
            prior=aggregate_line_items(prior_items),
            catalog=catalog,
        )

    def assemble(
        self,
        state: AggregatedState,
        identities: Optional[Dict[str, StaffIdentity]] = None,
        sources: Sequence[str] = (),
    ) -> ReportResult:
        window, current, prior, catalog = state.window, state.current, state.prior, state.catalog

        trends = compare_products(current, prior)
        products = metrics.build_product_rows(current, trends, catalog)
        total_revenue = current.total_revenue

        result = ReportResult(
            summary=metrics.build_summary(current, prior),
            products=products,
            red_flags=self.detector.detect(products, window.span_days),
            categories=metrics.build_category_rows(products, total_revenue),
            daily_trend=metrics.build_daily_trend(current),
            staff_retail=build_staff_rows(current.staff, identities or {}),
            margin_data=metrics.build_margin_data(products, catalog),
            brand_performance=metrics.build_brand_rows(products, prior, catalog, total_revenue),
            dead_stock=detect_dead_stock(catalog, current, prior, window),
            period=_period_info(window),
            prior_period=_period_info(window.prior()),
            sources=tuple(sources),
        )

        logger.info(
            "Retail report assembled",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            revenue=round(total_revenue, 2),
            products=len(products),
            red_flags=len(result.red_flags),
            dead_stock=len(result.dead_stock),
        )
        return result


def build_report_from_items(
    window: Optional[ReportWindow],
    current_items: Iterable[LineItem],
    prior_items: Iterable[LineItem] = (),
    catalog_products: Iterable[CatalogProduct] = (),
    staff_mappings: Iterable[StaffMapping] = (),
    profiles: Iterable[PersonProfile] = (),
    sources: Sequence[str] = (),
) -> ReportResult:
    """
    Store-free report construction from already-normalized line items.

    Returns the empty result when `window` is None.
    """
    if window is None:
        return ReportResult.empty()

    assembler = ReportAssembler()
    state = assembler.aggregate(window, current_items, prior_items, CatalogIndex(catalog_products))
    identities = resolve_identities(state.staff_ids, staff_mappings, profiles)
    return assembler.assemble(state, identities, sources)
