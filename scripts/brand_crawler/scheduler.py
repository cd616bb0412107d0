#!/usr/bin/env python3
"""
Brand Scheduler - fairness queue for the Brand Crawler
Most overdue brand first: ascending last_crawled_at, one pop per brand per sweep
"""
import logging
from typing import Dict, Iterable, List

from utils.indexed_heap import IndexedMinHeap

from .errors import EmptyQueue
from .models import Brand, BrandRecord

logger = logging.getLogger(__name__)

class BrandScheduler:
    """Min-heap of brands keyed by (sweep last popped in, last_crawled_at, name)

    A brand popped during the current sweep sorts after every brand not yet
    popped, so pushing it back never makes it poppable again before the next
    begin_sweep(). The sweep stamp only changes while the brand is out of the
    heap, which keeps heap keys stable.
    """

    def __init__(self):
        self._sweep = 1
        self._popped_in: Dict[str, int] = {}
        self._queue: IndexedMinHeap[Brand] = IndexedMinHeap(key=self._priority, ident=lambda b: b.name)

    def _priority(self, brand: Brand):
        return (self._popped_in.get(brand.name, 0), brand.last_crawled_at, brand.name)

    def __len__(self) -> int:
        return len(self._queue)

    def begin_sweep(self) -> None:
        """Open a new sweep: every queued brand becomes poppable once"""
        self._sweep += 1
        logger.debug(f"Sweep {self._sweep} opened with {len(self._queue)} brands")

    def pop_next_brand(self) -> Brand:
        """Remove and return the most overdue brand not yet popped this sweep

        Raises:
            EmptyQueue: no brand remains for this sweep
        """
        if not self._queue:
            raise EmptyQueue("no brands queued")
        head = self._queue.peek()
        if self._popped_in.get(head.name, 0) >= self._sweep:
            raise EmptyQueue(f"sweep {self._sweep} complete")

        brand = self._queue.pop()
        self._popped_in[brand.name] = self._sweep
        return brand

    def push_brand(self, brand: Brand) -> None:
        """Insert or reinsert a brand, restoring heap order"""
        self._queue.push(brand)

    def reload(self, records: Iterable[BrandRecord]) -> bool:
        """
        Replace the working set from a store snapshot

        Same cardinality as the current set keeps the queue and its accumulated
        state untouched. Any size change rebuilds the queue from scratch with
        zeroed high-water marks and pass counts.

        Args:
            records: Brand records from the store

        Returns:
            True when the queue was rebuilt
        """
        records = list({record.name: record for record in records}.values())
        if len(records) == len(self._queue):
            logger.debug(f"Brand set size unchanged ({len(records)}), keeping queue")
            return False

        logger.info(f"Brand set changed ({len(self._queue)} → {len(records)}), rebuilding queue")
        self._queue.clear()
        self._popped_in.clear()
        for record in sorted(records, key=lambda r: r.name):
            self._queue.push(Brand.from_record(record))
        return True

    def brands(self) -> List[Brand]:
        """Queued brands in pop order (snapshot)"""
        return sorted(self._queue, key=self._priority)
