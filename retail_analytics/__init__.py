"""
Retail Sales Analytics Engine

Aggregates salon retail sales from the legacy POS integration and the
native point-of-sale into a period report with trends, margins, red flags
and dead stock.
"""

__version__ = "1.0.0"
