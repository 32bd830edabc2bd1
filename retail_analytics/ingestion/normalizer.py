"""
Line-Item Normalization

Maps the two raw sales variants onto the canonical LineItem and classifies
each one as product, service or other. Classification happens here and
only here; everything downstream reads `LineItem.line_type`.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import structlog

from retail_analytics.config import AnalyticsSettings, get_settings
from retail_analytics.ingestion.records import (
    LegacyTransactionItem,
    LineItem,
    LineType,
    NativeSaleItem,
    RawSaleRecord,
)
from retail_analytics.transformation.periods import ReportWindow

logger = structlog.get_logger(__name__)

UNKNOWN_NAME = "Unknown"


@dataclass
class NormalizationStats:
    """Counts from one normalization pass"""
    total_records: int = 0
    products: int = 0
    services: int = 0
    discarded_type: int = 0
    unresolved_header: int = 0
    outside_window: int = 0


class LineItemNormalizer:
    """
    Canonicalizes raw sales records.

    Native point-of-sale items are always retail products. Legacy items are
    classified by `item_type`, compared case-insensitively against the
    configured product and service synonyms.

    Example:
        normalizer = LineItemNormalizer()
        items = normalizer.normalize_all(raw_records, window)
    """

    def __init__(
        self,
        product_types: Optional[Sequence[str]] = None,
        service_types: Optional[Sequence[str]] = None,
    ):
        analytics: AnalyticsSettings = get_settings().analytics
        if product_types is None:
            product_types = analytics.product_types
        if service_types is None:
            service_types = analytics.service_types
        self.product_types = frozenset(t.strip().lower() for t in product_types)
        self.service_types = frozenset(t.strip().lower() for t in service_types)
        self.stats = NormalizationStats()

    def classify(self, record: RawSaleRecord) -> LineType:
        if isinstance(record, NativeSaleItem):
            return LineType.PRODUCT

        item_type = (record.item_type or "").strip().lower()
        if item_type in self.product_types:
            return LineType.PRODUCT
        if item_type in self.service_types:
            return LineType.SERVICE
        return LineType.OTHER

    def normalize(
        self,
        record: RawSaleRecord,
        window: Optional[ReportWindow] = None,
    ) -> Optional[LineItem]:
        """
        Canonical form of `record`, or None when it should be dropped.

        Records are dropped when they are neither product nor service, when
        a native item never got its sale header, or when the sale date falls
        outside `window`.
        """
        self.stats.total_records += 1

        line_type = self.classify(record)
        if line_type is LineType.OTHER:
            self.stats.discarded_type += 1
            return None

        if isinstance(record, NativeSaleItem):
            item = self._from_native(record)
            if item is None:
                self.stats.unresolved_header += 1
                return None
        else:
            item = self._from_legacy(record, line_type)

        if window is not None and not window.contains(item.transaction_date):
            self.stats.outside_window += 1
            return None

        if item.is_product:
            self.stats.products += 1
        else:
            self.stats.services += 1
        return item

    def normalize_all(
        self,
        records: Iterable[RawSaleRecord],
        window: Optional[ReportWindow] = None,
    ) -> List[LineItem]:
        items = [item for item in (self.normalize(r, window) for r in records) if item is not None]
        logger.debug(
            "Normalized sales records",
            total=self.stats.total_records,
            products=self.stats.products,
            services=self.stats.services,
            discarded=self.stats.discarded_type + self.stats.unresolved_header + self.stats.outside_window,
        )
        return items

    @staticmethod
    def _from_legacy(record: LegacyTransactionItem, line_type: LineType) -> LineItem:
        return LineItem(
            name=record.item_name or UNKNOWN_NAME,
            category=record.item_category,
            line_type=line_type,
            quantity=record.quantity or 1,
            unit_price=record.unit_price,
            discount=record.discount or 0.0,
            total_amount=record.total_amount or 0.0,
            transaction_date=record.transaction_date,
            transaction_id=record.transaction_id,
            staff_id=record.staff_id,
            source="legacy",
        )

    @staticmethod
    def _from_native(record: NativeSaleItem) -> Optional[LineItem]:
        if record.sale_date is None:
            return None
        return LineItem(
            name=record.product_name or UNKNOWN_NAME,
            category=record.category,
            line_type=LineType.PRODUCT,
            quantity=record.quantity or 1,
            unit_price=record.unit_price,
            discount=record.discount or 0.0,
            total_amount=record.total_amount or 0.0,
            transaction_date=record.sale_date,
            transaction_id=record.sale_id,
            staff_id=record.staff_id,
            source="native",
        )


def normalize_records(
    records: Iterable[RawSaleRecord],
    window: Optional[ReportWindow] = None,
) -> List[LineItem]:
    """Convenience function: normalize with the configured synonyms."""
    return LineItemNormalizer().normalize_all(records, window)
