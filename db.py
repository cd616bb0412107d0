#!/usr/bin/env python3
"""
Brand Crawler Database Module
Brand snapshot loading and mention appends on Supabase
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional
from supabase import create_client, Client
from tenacity import Retrying, stop_after_attempt, wait_exponential

from config import get_config
from scripts.brand_crawler.errors import StoreUnavailable
from scripts.brand_crawler.models import BrandRecord, PersistedMention

logger = logging.getLogger(__name__)

BRAND_TABLE = 'brand'
MENTION_TABLE = 'mention'

def _aliases(value: Any) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(alias.strip() for alias in value.split(',') if alias.strip())
    return tuple(str(alias) for alias in value)

def records_from_rows(rows: Iterable[Dict[str, Any]]) -> List[BrandRecord]:
    """Brand rows to BrandRecords; nameless rows skipped, duplicate names collapsed"""
    records: Dict[str, BrandRecord] = {}
    for row in rows:
        name = (row.get('name') or '').strip()
        if not name:
            logger.debug(f"Skipping brand row without name: {row}")
            continue
        if name in records:
            logger.warning(f"Duplicate brand name in store: {name}")
            continue
        records[name] = BrandRecord(name=name, aliases=_aliases(row.get('aliases')))
    return list(records.values())

class BrandStore:
    """Supabase store for brands and mentions"""

    def __init__(self, client: Optional[Client] = None, attempts: int = 3, wait=None):
        if client is None:
            config = get_config()
            if not config.supabase_url or not config.supabase_key:
                raise StoreUnavailable("SUPABASE_URL and SUPABASE_KEY are required")
            try:
                client = create_client(config.supabase_url, config.supabase_key)
            except Exception as e:
                raise StoreUnavailable(f"Supabase client creation failed: {e}") from e
        self.client = client
        self.attempts = attempts
        self.wait = wait if wait is not None else wait_exponential(multiplier=1, min=4, max=10)

    def _with_retry(self, operation: str, fn: Callable[[], Any]) -> Any:
        retryer = Retrying(stop=stop_after_attempt(self.attempts), wait=self.wait, reraise=True)
        try:
            return retryer(fn)
        except Exception as e:
            logger.error(f"Error during {operation}: {e}")
            raise StoreUnavailable(f"{operation} failed: {e}") from e

    def load_brands(self) -> List[BrandRecord]:
        """
        Load the complete brand set

        Raises:
            StoreUnavailable: store unreachable after retries
        """
        def select():
            return self.client.table(BRAND_TABLE).select('name, aliases').execute()

        result = self._with_retry("brand load", select)
        records = records_from_rows(result.data or [])
        logger.debug(f"Loaded {len(records)} brands")
        return records

    def append_mention(self, mention: PersistedMention) -> bool:
        """
        Append one mention (at-least-once, no idempotence expected from the store)

        Returns:
            True once the row is inserted

        Raises:
            StoreUnavailable: insert failed after retries
        """
        def insert():
            return self.client.table(MENTION_TABLE).insert(mention.to_row()).execute()

        self._with_retry("mention insert", insert)
        logger.debug(f"Mention stored: {mention.name} @ {mention.timestamp}")
        return True

class StaticBrandStore:
    """Fixed brand list; mentions go to an optional sink or only to the log (dry run)"""

    def __init__(self, names: Iterable[str], sink: Optional[BrandStore] = None):
        self.records = records_from_rows({'name': name} for name in names)
        self.sink = sink

    def load_brands(self) -> List[BrandRecord]:
        return list(self.records)

    def append_mention(self, mention: PersistedMention) -> bool:
        if self.sink is not None:
            return self.sink.append_mention(mention)
        logger.info(f"[DRY-RUN] Mention: {mention.name} @ {mention.timestamp}: {mention.text[:80]}")
        return False
