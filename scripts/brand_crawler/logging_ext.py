#!/usr/bin/env python3
"""
Logging extensions for the Brand Crawler
Sweep summary counters, JSONL mention audit and performance timing
"""
import json
import time
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Any, Optional, TextIO
from collections import Counter

from .models import PersistedMention

logger = logging.getLogger(__name__)

@contextmanager
def performance_timer(operation: str, brand_name: str = None, extra_context: dict = None):
    """Context manager for structured performance logging"""
    start_time = time.perf_counter()
    context = {"operation": operation}
    if brand_name:
        context["brand_name"] = brand_name
    if extra_context:
        context.update(extra_context)

    try:
        yield context
    except Exception as e:
        context["error"] = str(e)
        context["success"] = False
        raise
    else:
        context["success"] = True
    finally:
        end_time = time.perf_counter()
        context["duration_ms"] = round((end_time - start_time) * 1000, 2)
        logger.debug(f"[PERF] {operation}: {context['duration_ms']}ms", extra={"perf": context})

class SweepSummary:
    """Counters for one crawl sweep"""

    def __init__(self, sweep: int = 0):
        self.sweep = sweep
        self.brands_crawled = 0
        self.brands_failed = 0
        self.pages_fetched = 0
        self.mentions_emitted = 0
        self.malformed_fields = 0
        self.stop_reasons = Counter()

    def record_walk(self, pages: int, mentions: int, malformed: int, stop_reason: Optional[str]):
        self.brands_crawled += 1
        self.pages_fetched += pages
        self.mentions_emitted += mentions
        self.malformed_fields += malformed
        self.stop_reasons[stop_reason or 'unknown'] += 1

    def record_failure(self, pages: int = 0):
        self.brands_failed += 1
        self.pages_fetched += pages

    def as_dict(self) -> Dict[str, Any]:
        return {
            'sweep': self.sweep,
            'brands_crawled': self.brands_crawled,
            'brands_failed': self.brands_failed,
            'pages_fetched': self.pages_fetched,
            'mentions_emitted': self.mentions_emitted,
            'malformed_fields': self.malformed_fields,
            'stop_reasons': dict(self.stop_reasons)
        }

    def log_summary(self):
        """Log one summary line for the sweep"""
        reasons = ', '.join(f"{reason}={count}" for reason, count in self.stop_reasons.most_common())
        logger.info(
            f"📊 Sweep {self.sweep}: brands={self.brands_crawled} failed={self.brands_failed} "
            f"pages={self.pages_fetched} mentions={self.mentions_emitted} "
            f"malformed={self.malformed_fields} stops=[{reasons}]"
        )

class JSONLWriter:
    """JSONL writer with append-only mode and immediate flushing"""

    def __init__(self, filepath: Optional[str]):
        self.filepath = filepath
        self.jsonl_file: Optional[TextIO] = None
        self.enabled = bool(filepath)

    def initialize(self):
        """Open the JSONL output file if enabled"""
        if not self.enabled:
            return

        try:
            self.jsonl_file = open(self.filepath, 'a', encoding='utf-8')
            logger.debug(f"JSONL output initialized: {self.filepath}")
        except OSError as e:
            logger.error(f"Failed to initialize JSONL output {self.filepath}: {e}")
            self.jsonl_file = None

    def write_mention(self, mention: PersistedMention, stored: bool):
        """Append one emitted mention"""
        if not self.jsonl_file:
            return

        entry = dict(mention.to_row())
        entry['stored'] = stored
        entry['ts'] = datetime.now(timezone.utc).isoformat()
        try:
            self.jsonl_file.write(json.dumps(entry, ensure_ascii=False) + '\n')
            self.jsonl_file.flush()
        except OSError as e:
            logger.error(f"Failed to write JSONL entry: {e}")

    def close(self):
        """Close JSONL output file"""
        if self.jsonl_file:
            try:
                self.jsonl_file.close()
            except OSError as e:
                logger.error(f"Error closing JSONL file: {e}")
            self.jsonl_file = None
