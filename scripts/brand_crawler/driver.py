#!/usr/bin/env python3
"""
Crawl Cycle Driver for the Brand Crawler
Reload brands, sweep every brand once in fairness order, commit, repeat forever
"""
import time
import logging
import schedule
from typing import Callable, List, Optional

from config import CrawlerConfig

from .errors import ConfigurationError, EmptyQueue, FetchError, StoreUnavailable
from .logging_ext import JSONLWriter, SweepSummary, performance_timer
from .models import Brand, PersistedMention, WalkState
from .normalizer import MentionNormalizer
from .scheduler import BrandScheduler
from .walker import FetchPage, PaginationWalker

logger = logging.getLogger(__name__)

class CrawlDriver:
    """Long-running crawl loop over a brand store and a page fetcher

    The store must provide load_brands() and append_mention(mention), the
    latter returning True when the mention was persisted; both raise
    StoreUnavailable on failure. fetch_page(query, cursor) raises FetchError
    on transport failure.
    """

    def __init__(self, store, fetch_page: FetchPage, crawler_config: CrawlerConfig,
                 scheduler: Optional[BrandScheduler] = None,
                 jsonl_writer: Optional[JSONLWriter] = None,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.fetch_page = fetch_page
        self.config = crawler_config
        self.scheduler = scheduler or BrandScheduler()
        self.walker = PaginationWalker(
            MentionNormalizer(source_tag=crawler_config.source_tag),
            max_extra_pages=crawler_config.max_extra_pages
        )
        self.jsonl_writer = jsonl_writer
        self.clock = clock
        self.is_running = False
        self.sweeps_completed = 0
        self.last_summary: Optional[SweepSummary] = None

    def reload_brands(self) -> bool:
        """Refresh the scheduler from the store; keep the last snapshot if the store is down"""
        try:
            records = self.store.load_brands()
        except StoreUnavailable as e:
            logger.error(f"Brand reload failed, keeping last snapshot of {len(self.scheduler)} brands: {e}")
            return False

        self.scheduler.reload(records)
        return True

    def crawl_brand(self, brand: Brand, summary: SweepSummary) -> bool:
        """
        Walk one brand, persist its new mentions, then commit its bookkeeping

        Nothing is committed when a page fetch fails: the brand keeps its marks
        and is retried on the next sweep. When a mention append fails part way,
        only the high-water mark moves past the mentions already written.

        Returns:
            True when the brand was committed
        """
        try:
            with performance_timer("crawl_brand", brand_name=brand.name):
                state = self.walker.walk(brand, self.fetch_page)
                self._flush(brand, state)
        except FetchError as e:
            logger.warning(f"⚠️ {brand.name}: fetch failed, abandoning walk this sweep: {e}")
            summary.record_failure()
            return False
        except StoreUnavailable as e:
            logger.error(f"❌ {brand.name}: mention append failed, marks not committed: {e}")
            summary.record_failure(pages=0)
            return False

        self._commit(brand, state)
        summary.record_walk(
            pages=state.pages_fetched,
            mentions=len(state.mentions),
            malformed=state.malformed_fields,
            stop_reason=state.stop_reason
        )
        if state.mentions:
            logger.info(f"✅ {brand.name}: {len(state.mentions)} new mention(s) over {state.pages_fetched} page(s)")
        return True

    def _flush(self, brand: Brand, state: WalkState) -> None:
        # feed order is newest first; persist oldest first
        pending = list(reversed(state.mentions))
        for i, mention in enumerate(pending):
            try:
                stored = self.store.append_mention(mention)
            except StoreUnavailable:
                self._advance_past_written(brand, pending[:i], pending[i:])
                raise
            if self.jsonl_writer:
                self.jsonl_writer.write_mention(mention, stored=bool(stored))

    def _advance_past_written(self, brand: Brand, written: List[PersistedMention],
                              unwritten: List[PersistedMention]) -> None:
        """Raise the high-water mark over written mentions, never over an unwritten one"""
        if not written:
            return
        mark = min(max(m.timestamp for m in written), min(m.timestamp for m in unwritten) - 1)
        if mark > brand.last_crawled_at:
            logger.info(f"{brand.name}: {len(written)} mention(s) stored before failure, "
                        f"high-water mark {brand.last_crawled_at} → {mark}")
            brand.last_crawled_at = mark

    def _commit(self, brand: Brand, state: WalkState) -> None:
        now = int(self.clock())
        brand.last_crawled_at = max(brand.last_crawled_at, state.tentative_high_water, now)
        brand.searched_depth = max(brand.searched_depth, state.max_depth)
        brand.pass_count += 1

    def run_sweep(self) -> SweepSummary:
        """Reload brands and crawl each of them once, most overdue first"""
        self.reload_brands()
        self.scheduler.begin_sweep()
        summary = SweepSummary(sweep=self.sweeps_completed + 1)

        with performance_timer("sweep", extra_context={"brands": len(self.scheduler)}):
            while True:
                try:
                    brand = self.scheduler.pop_next_brand()
                except EmptyQueue:
                    break

                try:
                    self.crawl_brand(brand, summary)
                finally:
                    self.scheduler.push_brand(brand)

        self.sweeps_completed += 1
        self.last_summary = summary
        summary.log_summary()
        return summary

    def _safe_sweep(self):
        try:
            self.run_sweep()
        except Exception as e:
            logger.exception(f"Sweep failed, continuing: {e}")

    def stop(self):
        self.is_running = False

    def run_forever(self):
        """Sweep now, then every crawl_interval_s after the previous sweep ends, until interrupted"""
        logger.info(f"🔄 Starting crawl loop (interval={self.config.crawl_interval_s}s, "
                    f"max pages per brand={self.walker.max_pages})")
        self.is_running = True
        jobs = schedule.Scheduler()

        try:
            self._safe_sweep()
            jobs.every(self.config.crawl_interval_s).seconds.do(self._safe_sweep)
            while self.is_running:
                jobs.run_pending()
                idle = jobs.idle_seconds
                time.sleep(1.0 if idle is None else min(1.0, max(0.05, idle)))
        except KeyboardInterrupt:
            logger.info("🛑 Received interrupt signal")
        finally:
            self.is_running = False
            jobs.clear()
            logger.info(f"Crawl loop stopped after {self.sweeps_completed} sweep(s)")


def _resolve_config(args):
    """Load config.json/env settings and apply CLI overrides (highest priority)"""
    from config import load_config

    if args.dry_run and not args.brand_names:
        raise ConfigurationError("--dry-run requires --brand-names")

    try:
        config = load_config(args.config)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    crawler_config = config.crawler
    if args.interval is not None:
        crawler_config.crawl_interval_s = args.interval
    if args.max_extra_pages is not None:
        crawler_config.max_extra_pages = max(0, args.max_extra_pages)
    if args.page_limit is not None:
        crawler_config.page_limit = max(1, args.page_limit)
    if args.jsonl_out:
        crawler_config.jsonl_out = args.jsonl_out
    return config


def main(argv=None):
    """CLI interface for the Brand Crawler"""
    import argparse
    from db import BrandStore, StaticBrandStore
    from .graph_client import GraphSearchClient

    parser = argparse.ArgumentParser(description='Brand Crawler - rotating feed search with pagination dedup')
    parser.add_argument('--once', action='store_true', help='Run a single sweep and exit')
    parser.add_argument('--brand-names', help='Static brand list instead of the store (e.g. "Acme,Globex")')
    parser.add_argument('--dry-run', action='store_true', help='Do not write mentions to the store (requires --brand-names)')
    parser.add_argument('--config', default='config.json', help='Path to config.json')
    parser.add_argument('--interval', type=float, help='Seconds between sweeps (default 5)')
    parser.add_argument('--max-extra-pages', type=int, help='Pages after the first per brand per sweep (default 4)')
    parser.add_argument('--page-limit', type=int, help='Records per page (default 100)')

    # Output options
    parser.add_argument('--jsonl-out', help='Append emitted mentions to this JSONL file')
    parser.add_argument('--log-file', help='Also write logs to this file')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    # Configure logging
    handlers = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file))
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    try:
        config = _resolve_config(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    crawler_config = config.crawler

    try:
        if args.brand_names:
            names = [name.strip() for name in args.brand_names.split(',') if name.strip()]
            store = StaticBrandStore(names, sink=None if args.dry_run else BrandStore())
        else:
            store = BrandStore()
    except StoreUnavailable as e:
        logger.error(f"Store unavailable: {e}")
        return 1

    client = GraphSearchClient(crawler_config, access_token=config.graph_access_token)
    jsonl_writer = JSONLWriter(crawler_config.jsonl_out)
    jsonl_writer.initialize()

    driver = CrawlDriver(store, client.fetch_page, crawler_config, jsonl_writer=jsonl_writer)
    try:
        if args.once:
            driver.run_sweep()
        else:
            driver.run_forever()
    finally:
        jsonl_writer.close()

    return 0
