"""
Offset pagination over the record store.

Result sets of any size are read in fixed windows `[offset, offset + size)`
and concatenated until a short page signals the end. Errors are never
swallowed: a failing page aborts the whole fetch.

The store must return rows in a stable order across calls (queries built
by RetailDataSource always order by primary key). Rows inserted or deleted
between two page requests can still shift the window; that is accepted.
"""

from typing import AsyncGenerator, Awaitable, Callable, Generic, List, Sequence, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[int, int], Awaitable[Sequence[T]]]

DEFAULT_PAGE_SIZE = 1000


class OffsetPaginator(Generic[T]):
    """
    Paginator for offset/limit queries.

    Usage:
        async def fetch_page(offset, limit):
            result = await session.execute(query.offset(offset).limit(limit))
            return result.scalars().all()

        rows = await OffsetPaginator(fetch_page, page_size=500).fetch_all()
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        page_size: int = DEFAULT_PAGE_SIZE,
        source: str = "records",
    ):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.fetch_page = fetch_page
        self.page_size = page_size
        self.source = source
        self.pages_fetched = 0

    async def pages(self) -> AsyncGenerator[Sequence[T], None]:
        """Yield successive pages until one comes back short."""
        offset = 0
        while True:
            page = await self.fetch_page(offset, self.page_size)
            self.pages_fetched += 1

            if page:
                yield page

            if len(page) < self.page_size:
                break
            offset += self.page_size

    async def fetch_all(self) -> List[T]:
        """Concatenate every page in store order."""
        rows: List[T] = []
        async for page in self.pages():
            rows.extend(page)

        logger.debug(
            "Paginated fetch complete",
            source=self.source,
            rows=len(rows),
            pages=self.pages_fetched,
        )
        return rows


async def fetch_all_pages(
    fetch_page: PageFetcher,
    page_size: int = DEFAULT_PAGE_SIZE,
    source: str = "records",
) -> List[T]:
    """Convenience wrapper around OffsetPaginator.fetch_all."""
    return await OffsetPaginator(fetch_page, page_size=page_size, source=source).fetch_all()
