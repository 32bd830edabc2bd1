"""
Catalog Index

Lookup structures over the active product catalog, keyed by the canonical
(trimmed, lowercased) product name. Sales lines join to the catalog by
name only, so every insert and every lookup goes through canonical_name().

Two catalog rows whose names differ only by case collapse onto one key and
the later row wins. Whether such rows are really distinct SKUs is a
question for the business; it is not resolved here.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

import structlog

from retail_analytics.ingestion.records import CatalogProduct

logger = structlog.get_logger(__name__)

UNCATEGORIZED = "Uncategorized"


def canonical_name(name: Optional[str]) -> str:
    """Join key for sales and catalog names: trimmed and lowercased."""
    return (name or "").strip().lower()


@dataclass(frozen=True)
class CatalogEntry:
    """Resolved catalog row"""
    name: str
    brand: str
    category: str
    retail_price: float
    cost_price: float
    quantity_on_hand: int


class CatalogIndex:
    """
    Name-keyed views of the product catalog.

    `cost_by_name` only holds products with a positive cost price; a product
    missing from it has no margin, which is different from a zero margin.
    """

    def __init__(self, products: Iterable[CatalogProduct] = ()):
        self.entries: Dict[str, CatalogEntry] = {}
        self.cost_by_name: Dict[str, float] = {}
        self.brand_by_name: Dict[str, str] = {}
        self.has_cost_data = False

        for product in products:
            self._add(product)

        logger.debug(
            "Catalog index built",
            products=len(self.entries),
            with_cost=len(self.cost_by_name),
        )

    def _add(self, product: CatalogProduct) -> None:
        key = canonical_name(product.name)
        if not key:
            return

        brand = product.brand or UNCATEGORIZED
        if product.cost_price is not None and product.cost_price > 0:
            self.has_cost_data = True
            self.cost_by_name[key] = float(product.cost_price)

        self.brand_by_name[key] = brand
        self.entries[key] = CatalogEntry(
            name=product.name.strip(),
            brand=brand,
            category=product.category or UNCATEGORIZED,
            retail_price=float(product.retail_price or 0),
            cost_price=float(product.cost_price or 0),
            quantity_on_hand=int(product.quantity_on_hand or 0),
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: str) -> bool:
        return canonical_name(name) in self.entries

    def __iter__(self) -> Iterator[Tuple[str, CatalogEntry]]:
        return iter(self.entries.items())

    def get(self, name: Optional[str]) -> Optional[CatalogEntry]:
        return self.entries.get(canonical_name(name))

    def cost_for(self, name: Optional[str]) -> Optional[float]:
        return self.cost_by_name.get(canonical_name(name))

    def brand_for(self, name: Optional[str]) -> str:
        return self.brand_by_name.get(canonical_name(name), UNCATEGORIZED)
