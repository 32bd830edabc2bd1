"""
Exception hierarchy for the retail analytics pipeline.

Exception Hierarchy:
    RetailAnalyticsError (base)
    ├── StoreFetchError        - a paged fetch or header join failed
    ├── ReportTimeoutError     - the report exceeded its time budget
    ├── InvalidDateRangeError  - dates could not be parsed or are reversed
    └── UnknownFacetError      - export requested for an unknown facet

Business-logic gaps (no catalog match, unmapped staff, division by zero)
never raise; they resolve to fallback values inside the pipeline.
"""

from typing import Optional


class RetailAnalyticsError(Exception):
    """Base exception for all retail analytics errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class StoreFetchError(RetailAnalyticsError):
    """
    A read against the record store failed.

    The whole report is aborted; callers decide whether to retry.
    """

    def __init__(self, source: str, details: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(f"Failed to fetch {source}", details)
        self.source = source
        self.offset = offset


class ReportTimeoutError(RetailAnalyticsError):
    """The report pipeline did not finish within its timeout."""

    def __init__(self, timeout: float):
        super().__init__("Retail report timed out", f"exceeded {timeout:g}s")
        self.timeout = timeout


class InvalidDateRangeError(RetailAnalyticsError):
    """Report dates are malformed or out of order."""

    def __init__(self, date_from: object, date_to: object, details: Optional[str] = None):
        super().__init__(f"Invalid date range {date_from!s}..{date_to!s}", details)
        self.date_from = date_from
        self.date_to = date_to


class UnknownFacetError(RetailAnalyticsError):
    """Export was requested for a facet that does not exist."""

    def __init__(self, facet: str, allowed: list):
        super().__init__(f"Unknown report facet '{facet}'", f"expected one of {', '.join(allowed)}")
        self.facet = facet
