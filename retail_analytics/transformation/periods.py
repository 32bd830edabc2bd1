"""
Reporting windows.

A window is an inclusive [start, end] range of calendar days. The prior
window is the immediately preceding span of identical length.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from retail_analytics.exceptions import InvalidDateRangeError

DateLike = Union[date, str, None]


@dataclass(frozen=True)
class ReportWindow:
    """Inclusive range of calendar days"""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidDateRangeError(self.start, self.end, "start is after end")

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days + 1

    def prior(self) -> "ReportWindow":
        """Equal-length window ending the day before this one starts."""
        return ReportWindow(
            start=self.start - timedelta(days=self.span_days),
            end=self.start - timedelta(days=1),
        )

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.start <= day <= self.end

    def datetime_bounds(self, padding: timedelta = timedelta(0)) -> tuple:
        """
        Half-open [start 00:00, day after end 00:00) for timestamp columns,
        widened by `padding` on both sides.
        """
        return (
            datetime.combine(self.start, time.min) - padding,
            datetime.combine(self.end + timedelta(days=1), time.min) + padding,
        )

    @classmethod
    def from_bounds(cls, date_from: DateLike, date_to: DateLike) -> Optional["ReportWindow"]:
        """
        Build a window from ISO strings or dates.

        Returns None when either bound is missing; the caller treats that as
        "no report requested yet" rather than an error.
        """
        if not date_from or not date_to:
            return None
        return cls(start=_coerce_date(date_from, date_from, date_to), end=_coerce_date(date_to, date_from, date_to))


def _coerce_date(value: Union[date, str], date_from: DateLike, date_to: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise InvalidDateRangeError(date_from, date_to, str(e)) from e
