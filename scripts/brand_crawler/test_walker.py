#!/usr/bin/env python3
"""
Tests for the Pagination Walker - bounded traversal and depth dedup
"""
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

import pytest

from scripts.brand_crawler.errors import FetchError
from scripts.brand_crawler.models import Brand, FeedPage
from scripts.brand_crawler.normalizer import MentionNormalizer
from scripts.brand_crawler.page_parser import cursor_depth
from scripts.brand_crawler.walker import PaginationWalker


def wire(ts):
    return datetime.fromtimestamp(ts, timezone.utc).strftime('%Y-%m-%dT%H:%M:%S+0000')


class SyntheticFeed:
    """Reverse-chronological feed; pages=None means unlimited pages"""

    def __init__(self, newest=1_000_000, per_page=3, step=10, pages: Optional[int] = None):
        self.newest = newest
        self.per_page = per_page
        self.step = step
        self.pages = pages
        self.calls = []

    def timestamps(self, index):
        first = index * self.per_page
        return [self.newest - (first + k) * self.step for k in range(self.per_page)]

    def cursor_for(self, index):
        return f"https://graph.facebook.com/search?q=acme&type=post&until={self.timestamps(index)[-1]}&page={index + 1}"

    def __call__(self, query, cursor):
        self.calls.append((query, cursor))
        index = 0 if cursor is None else int(cursor.rsplit('page=', 1)[1])
        records = []
        for ts in self.timestamps(index):
            records.extend([f"{query} post {ts}", str(ts), wire(ts)])
        last = self.pages is not None and index + 1 >= self.pages
        return FeedPage(records=records, next_cursor=None if last else self.cursor_for(index))


class TestPaginationWalker:

    def setup_method(self):
        self.walker = PaginationWalker(MentionNormalizer(source_tag='facebook'), max_extra_pages=4)

    def test_unlimited_feed_fetches_at_most_five_pages(self):
        feed = SyntheticFeed()
        state = self.walker.walk(Brand(name='acme'), feed)

        assert len(feed.calls) == 5
        assert state.pages_fetched == 5
        assert state.stop_reason == 'page_limit'
        assert len(state.mentions) == 15
        assert state.max_depth == cursor_depth(feed.cursor_for(0))

    def test_zero_extra_pages_fetches_only_first_page(self):
        walker = PaginationWalker(MentionNormalizer(), max_extra_pages=0)
        feed = SyntheticFeed()

        state = walker.walk(Brand(name='acme'), feed)

        assert len(feed.calls) == 1
        assert state.stop_reason == 'page_limit'
        assert state.max_depth == 0

    def test_first_page_uses_brand_name_and_no_cursor(self):
        feed = SyntheticFeed(pages=1)
        self.walker.walk(Brand(name='acme corp'), feed)
        assert feed.calls == [('acme corp', None)]

    def test_finite_feed_walks_every_page_including_last(self):
        feed = SyntheticFeed(pages=2)
        state = self.walker.walk(Brand(name='acme'), feed)

        assert len(feed.calls) == 2
        assert state.stop_reason == 'exhausted'
        assert len(state.mentions) == 6
        assert state.tentative_high_water == feed.newest

    def test_stops_when_previously_seen_data_reached(self):
        feed = SyntheticFeed()
        # page 2 holds newest-30, newest-40, newest-50
        brand = Brand(name='acme', last_crawled_at=feed.newest - 40)

        state = self.walker.walk(brand, feed)

        assert len(feed.calls) == 2
        assert state.reached_seen
        assert [m.timestamp for m in state.mentions] == [feed.newest - k * 10 for k in range(4)]

    def test_second_walk_on_unchanged_feed_emits_nothing(self):
        feed = SyntheticFeed()
        brand = Brand(name='acme')
        first = self.walker.walk(brand, feed)
        brand.last_crawled_at = max(brand.last_crawled_at, first.tentative_high_water)
        brand.searched_depth = max(brand.searched_depth, first.max_depth)
        brand.pass_count += 1
        feed.calls.clear()

        second = self.walker.walk(brand, feed)

        assert second.mentions == []
        assert len(feed.calls) <= 1
        assert second.tentative_high_water <= brand.last_crawled_at

    def test_later_pass_stops_at_already_searched_depth(self):
        feed = SyntheticFeed()
        brand = Brand(name='acme', pass_count=1, searched_depth=cursor_depth(feed.cursor_for(0)))

        state = self.walker.walk(brand, feed)

        assert len(feed.calls) == 1
        assert state.stop_reason == 'already_searched'
        assert len(state.mentions) == 3
        assert state.max_depth == 0

    def test_first_pass_ignores_searched_depth(self):
        feed = SyntheticFeed()
        brand = Brand(name='acme', pass_count=0, searched_depth=feed.newest * 2)

        state = self.walker.walk(brand, feed)

        assert len(feed.calls) == 5

    def test_malformed_cursor_stops_pagination_without_error(self):
        def fetch(query, cursor):
            return FeedPage(records=['hello', '1', wire(500)], next_cursor='https://graph.facebook.com/search?q=acme')

        state = self.walker.walk(Brand(name='acme'), fetch)

        assert state.stop_reason == 'bad_cursor'
        assert state.pages_fetched == 1
        assert len(state.mentions) == 1

    def test_fetch_error_propagates_and_brand_untouched(self):
        feed = SyntheticFeed()
        calls = []

        def flaky(query, cursor):
            calls.append(cursor)
            if len(calls) == 2:
                raise FetchError("connection reset")
            return feed(query, cursor)

        brand = Brand(name='acme', last_crawled_at=5, searched_depth=7, pass_count=2)
        before = asdict(brand)

        with pytest.raises(FetchError):
            self.walker.walk(brand, flaky)

        assert asdict(brand) == before

    def test_walk_never_mutates_brand(self):
        brand = Brand(name='acme')
        before = asdict(brand)
        self.walker.walk(brand, SyntheticFeed())
        assert asdict(brand) == before
