#!/usr/bin/env python3
"""
Tests for the Brand Scheduler - fairness, sweeps and reload stability
"""
import random

import pytest

from scripts.brand_crawler.errors import EmptyQueue
from scripts.brand_crawler.models import Brand, BrandRecord
from scripts.brand_crawler.scheduler import BrandScheduler


def records(*names):
    return [BrandRecord(name=name) for name in names]


class TestBrandScheduler:

    def setup_method(self):
        self.scheduler = BrandScheduler()

    def test_sweep_pops_every_brand_once_in_last_crawled_order(self):
        stamps = random.Random(7).sample(range(1, 10_000), 25)
        for i, stamp in enumerate(stamps):
            self.scheduler.push_brand(Brand(name=f"brand-{i}", last_crawled_at=stamp))

        self.scheduler.begin_sweep()
        popped_names = []
        popped_stamps = []
        while True:
            try:
                brand = self.scheduler.pop_next_brand()
            except EmptyQueue:
                break
            popped_names.append(brand.name)
            popped_stamps.append(brand.last_crawled_at)
            brand.last_crawled_at = 20_000 + len(popped_stamps)
            self.scheduler.push_brand(brand)

        assert len(popped_names) == 25
        assert len(set(popped_names)) == 25
        assert popped_stamps == sorted(stamps)
        assert len(self.scheduler) == 25

    def test_pop_order_is_ascending_last_crawled_at(self):
        for name, stamp in [('a', 300), ('b', 100), ('c', 200)]:
            self.scheduler.push_brand(Brand(name=name, last_crawled_at=stamp))

        self.scheduler.begin_sweep()
        order = [self.scheduler.pop_next_brand().last_crawled_at for _ in range(3)]
        assert order == [100, 200, 300]

    def test_pushed_back_brand_not_repopped_in_same_sweep(self):
        stale = Brand(name='stale', last_crawled_at=1)
        fresh = Brand(name='fresh', last_crawled_at=50)
        self.scheduler.push_brand(stale)
        self.scheduler.push_brand(fresh)

        self.scheduler.begin_sweep()
        first = self.scheduler.pop_next_brand()
        assert first is stale
        # failed crawl: pushed back with unchanged priority
        self.scheduler.push_brand(first)

        assert self.scheduler.pop_next_brand() is fresh
        self.scheduler.push_brand(fresh)
        with pytest.raises(EmptyQueue):
            self.scheduler.pop_next_brand()

        # next sweep: the stale brand is served first again
        self.scheduler.begin_sweep()
        assert self.scheduler.pop_next_brand() is stale

    def test_empty_scheduler_raises_empty_queue(self):
        with pytest.raises(EmptyQueue):
            self.scheduler.pop_next_brand()

    def test_push_same_name_twice_keeps_one_entry(self):
        brand = Brand(name='acme')
        self.scheduler.push_brand(brand)
        self.scheduler.push_brand(brand)
        assert len(self.scheduler) == 1

    def test_reload_builds_zeroed_brands(self):
        rebuilt = self.scheduler.reload([BrandRecord(name='acme', aliases=('ACME Corp',)), BrandRecord(name='globex')])

        assert rebuilt is True
        assert len(self.scheduler) == 2
        for brand in self.scheduler.brands():
            assert brand.last_crawled_at == 0
            assert brand.searched_depth == 0
            assert brand.pass_count == 0
        assert self.scheduler.brands()[0].aliases == ['ACME Corp']

    def test_reload_same_cardinality_preserves_state(self):
        self.scheduler.reload(records('acme', 'globex'))
        self.scheduler.begin_sweep()
        brand = self.scheduler.pop_next_brand()
        brand.last_crawled_at = 1_700_000_000
        brand.searched_depth = 1_690_000_000
        brand.pass_count = 3
        self.scheduler.push_brand(brand)

        rebuilt = self.scheduler.reload(records('acme', 'globex'))

        assert rebuilt is False
        kept = {b.name: b for b in self.scheduler.brands()}[brand.name]
        assert kept is brand
        assert kept.last_crawled_at == 1_700_000_000
        assert kept.searched_depth == 1_690_000_000
        assert kept.pass_count == 3

    def test_reload_size_change_resets_everything(self):
        self.scheduler.reload(records('acme', 'globex'))
        for brand in self.scheduler.brands():
            brand.pass_count = 5
            brand.last_crawled_at = 99

        rebuilt = self.scheduler.reload(records('acme', 'globex', 'initech'))

        assert rebuilt is True
        assert [b.name for b in self.scheduler.brands()] == ['acme', 'globex', 'initech']
        assert all(b.pass_count == 0 and b.last_crawled_at == 0 for b in self.scheduler.brands())

    def test_reload_collapses_duplicate_names(self):
        self.scheduler.reload(records('acme', 'acme', 'globex'))
        assert len(self.scheduler) == 2
        assert self.scheduler.reload(records('acme', 'acme', 'globex')) is False
