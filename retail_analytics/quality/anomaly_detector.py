"""
Red Flag Detection

Rule-based anomaly checks over the finished product rows:
- Declining: revenue well below the prior period
- Heavy discount: a large share of retail value given away
- Slow mover: very few units over a long enough window

Every rule is evaluated independently, so one product can carry several
flags. Thresholds come from AnalyticsSettings.
"""

from typing import Callable, Iterable, List, Optional, Tuple

import structlog

from retail_analytics.config import AnalyticsSettings, get_settings
from retail_analytics.reporting.metrics import discount_rate, round_half_up
from retail_analytics.reporting.models import ProductRow, RedFlag, RedFlagType, Severity

logger = structlog.get_logger(__name__)

FlagRule = Callable[[ProductRow, int], Optional[RedFlag]]


class RedFlagDetector:
    """
    Product anomaly detector.

    Example:
        detector = RedFlagDetector()
        flags = detector.detect(report_products, span_days=30)
    """

    def __init__(self, settings: Optional[AnalyticsSettings] = None):
        self.settings = settings or get_settings().analytics
        self._rules: List[FlagRule] = [
            self._check_declining,
            self._check_heavy_discount,
            self._check_slow_mover,
        ]

    def add_rule(self, rule: FlagRule) -> "RedFlagDetector":
        """Register an additional rule, evaluated after the built-in ones"""
        self._rules.append(rule)
        return self

    def _check_declining(self, product: ProductRow, span_days: int) -> Optional[RedFlag]:
        trend = product.revenue_trend
        if product.prior_revenue <= 0 or trend >= self.settings.declining_warning_pct:
            return None

        severity = Severity.DANGER if trend < self.settings.declining_danger_pct else Severity.WARNING
        return RedFlag(
            product=product.name,
            type=RedFlagType.DECLINING,
            label="Declining Sales",
            severity=severity,
            detail=f"Revenue down {abs(round_half_up(trend))}% vs prior period",
        )

    def _check_heavy_discount(self, product: ProductRow, span_days: int) -> Optional[RedFlag]:
        if product.discount <= 0 or product.revenue <= 0:
            return None

        pct = discount_rate(product.discount, product.revenue)
        if pct <= self.settings.discount_warning_pct:
            return None

        severity = Severity.DANGER if pct > self.settings.discount_danger_pct else Severity.WARNING
        return RedFlag(
            product=product.name,
            type=RedFlagType.HEAVY_DISCOUNT,
            label="Heavy Discounting",
            severity=severity,
            detail=f"{round_half_up(pct)}% of retail value discounted",
        )

    def _check_slow_mover(self, product: ProductRow, span_days: int) -> Optional[RedFlag]:
        # Short windows would flag almost everything
        if span_days < self.settings.slow_mover_min_span_days:
            return None
        if product.units_sold >= self.settings.slow_mover_max_units:
            return None

        units = product.units_sold
        severity = Severity.DANGER if units <= self.settings.slow_mover_danger_units else Severity.WARNING
        return RedFlag(
            product=product.name,
            type=RedFlagType.SLOW_MOVER,
            label="Slow Mover",
            severity=severity,
            detail=f"Only {units} unit{'' if units == 1 else 's'} sold in {span_days} days",
        )

    def detect(self, products: Iterable[ProductRow], span_days: int) -> Tuple[RedFlag, ...]:
        """
        Run every rule against every product.

        Args:
            products: Product rows in report order
            span_days: Length of the reporting window in days

        Returns:
            Flags grouped by product, in rule order within a product
        """
        flags: List[RedFlag] = []
        checked = 0
        for product in products:
            checked += 1
            for rule in self._rules:
                flag = rule(product, span_days)
                if flag is not None:
                    flags.append(flag)

        danger_count = sum(1 for f in flags if f.severity is Severity.DANGER)
        if danger_count:
            logger.info(f"Red flags raised: {len(flags)}", products=checked, danger=danger_count)
        else:
            logger.debug(f"Red flag detection complete: {len(flags)} flags", products=checked)

        return tuple(flags)


def detect_red_flags(products: Iterable[ProductRow], span_days: int) -> Tuple[RedFlag, ...]:
    """Convenience function using the configured thresholds."""
    return RedFlagDetector().detect(products, span_days)
