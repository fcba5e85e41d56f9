"""
Gallery list consumers.

Both consumers sit on top of a `fetch_page(page, limit) -> WorkPage` callable,
which can be `WorkRepository.list` in-process or `PortfolioClient.list_works`
over HTTP.

- AccumulatingFeed: the public infinite-scroll view. Pages are appended to a
  running list each time the end of the content is reached.
- WindowedPager: the admin table. One page at a time, replaced on navigation.
"""

import logging
import math
from typing import Callable, List, Optional

from schemas import WorkItem, WorkPage

logger = logging.getLogger(__name__)

FetchPage = Callable[[int, int], WorkPage]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total > 0 else 0


class AccumulatingFeed:
    """Appends successive pages; at most one fetch in flight per feed."""

    def __init__(self, fetch_page: FetchPage, limit: int = 12) -> None:
        self.fetch_page = fetch_page
        self.limit = limit
        self.items: List[WorkItem] = []
        self.page = 0
        self.total = 0
        self.total_pages = 0
        self.loading = False
        self.started = False
        self.error: Optional[Exception] = None

    @property
    def has_more(self) -> bool:
        if not self.started:
            return True
        return self.page < self.total_pages

    def start(self) -> List[WorkItem]:
        """Load the first page, discarding anything accumulated so far."""
        self.items = []
        self.page = 0
        self.total = 0
        self.total_pages = 0
        self.started = False
        self._load(1)
        return self.items

    def reached_end(self) -> bool:
        """Boundary signal. Returns True when a fetch was actually issued."""
        if self.loading or not self.has_more:
            return False
        self._load(self.page + 1)
        return True

    def _load(self, page: int) -> None:
        self.loading = True
        self.error = None
        try:
            result = self.fetch_page(page, self.limit)
        except Exception as exc:
            self.error = exc
            logger.warning("Failed to load gallery page %s: %s", page, exc)
            raise
        finally:
            self.loading = False
        self.items.extend(result.items)
        self.page = result.page
        self.total = result.total
        self.total_pages = result.total_pages
        self.started = True


class WindowedPager:
    """Shows exactly one page; navigation replaces the previous page."""

    def __init__(self, fetch_page: FetchPage, limit: int = 5) -> None:
        self.fetch_page = fetch_page
        self.limit = limit
        self.items: List[WorkItem] = []
        self.page = 1
        self.total = 0
        self.total_pages = 0
        self.loading = False

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def last_page(self) -> int:
        return max(self.total_pages, 1)

    def load(self, page: int) -> List[WorkItem]:
        if self.loading or page < 1:
            return self.items
        self.loading = True
        try:
            result = self.fetch_page(page, self.limit)
        finally:
            self.loading = False
        self.items = list(result.items)
        self.page = result.page
        self.total = result.total
        self.total_pages = result.total_pages
        return self.items

    def next(self) -> List[WorkItem]:
        if not self.has_next:
            return self.items
        return self.load(self.page + 1)

    def previous(self) -> List[WorkItem]:
        if not self.has_previous:
            return self.items
        return self.load(self.page - 1)

    def go_to(self, page: int) -> List[WorkItem]:
        if page < 1 or page > self.last_page:
            return self.items
        return self.load(page)

    def refresh(self) -> List[WorkItem]:
        """Reload the current page, stepping back if it no longer exists (e.g. after a delete)."""
        self.load(self.page)
        if not self.items and self.page > 1 and self.page > self.total_pages:
            self.load(self.last_page)
        return self.items
