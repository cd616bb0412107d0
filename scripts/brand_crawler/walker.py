#!/usr/bin/env python3
"""
Pagination Walker for the Brand Crawler
Bounded, sequential walk over result pages that stops at previously seen data
"""
import logging
from typing import Callable, Optional

from .errors import MalformedCursor
from .models import Brand, FeedPage, WalkState
from .normalizer import MentionNormalizer
from .page_parser import cursor_depth

logger = logging.getLogger(__name__)

FetchPage = Callable[[str, Optional[str]], FeedPage]

class PaginationWalker:
    """Walk newest-to-oldest pages for one brand without touching the brand itself"""

    def __init__(self, normalizer: MentionNormalizer, max_extra_pages: int = 4):
        self.normalizer = normalizer
        self.max_extra_pages = max_extra_pages

    @property
    def max_pages(self) -> int:
        return 1 + self.max_extra_pages

    def walk(self, brand: Brand, fetch_page: FetchPage) -> WalkState:
        """
        Walk the result pages of one brand

        Stops when a record at or below the brand's high-water mark shows up,
        when the feed has no next page, after max_pages fetches, on a cursor
        without a usable depth, or (after the first pass) when the next page
        lies within the depth already searched.

        Args:
            brand: Brand being crawled (read only)
            fetch_page: Callable (query, cursor) -> FeedPage

        Returns:
            WalkState with buffered mentions, tentative high-water mark and depth

        Raises:
            FetchError: propagated from fetch_page; nothing is committed
        """
        state = WalkState(threshold=brand.last_crawled_at)
        first_pass = brand.pass_count == 0
        cursor: Optional[str] = None

        while True:
            page = fetch_page(brand.name, cursor)
            state.pages_fetched += 1
            logger.debug(f"{brand.name} pass {brand.pass_count + 1} page {state.pages_fetched}: "
                         f"{len(page.records) // 3} records")

            self.normalizer.normalize(brand.name, page.records, state)
            if state.reached_seen:
                break

            if not page.next_cursor:
                state.stop_reason = "exhausted"
                break

            if state.pages_fetched >= self.max_pages:
                state.stop_reason = "page_limit"
                break

            try:
                depth = cursor_depth(page.next_cursor)
            except MalformedCursor as e:
                logger.warning(f"{brand.name}: stopping pagination, {e}")
                state.stop_reason = "bad_cursor"
                break

            if not first_pass and brand.searched_depth >= depth:
                # next page and beyond were walked in an earlier cycle
                state.stop_reason = "already_searched"
                break

            state.max_depth = max(state.max_depth, depth)
            cursor = page.next_cursor

        logger.debug(f"{brand.name}: walk stopped ({state.stop_reason}) after {state.pages_fetched} page(s), "
                     f"{len(state.mentions)} new mention(s)")
        return state
