#!/usr/bin/env python3
"""
Brand Crawler - Modular Components
Fairness scheduling, bounded pagination and high-water-mark dedup for feed search
"""

# Main driver
from .driver import CrawlDriver

# Core components
from .scheduler import BrandScheduler
from .walker import PaginationWalker
from .normalizer import MentionNormalizer
from .graph_client import GraphSearchClient
from .models import Brand, BrandRecord, FeedPage, PersistedMention, RawMention, WalkState
from .errors import (
    BrandCrawlerError, ConfigurationError, EmptyQueue, FetchError, MalformedCursor, MalformedRecord,
    StoreUnavailable
)

__all__ = [
    'CrawlDriver',
    'BrandScheduler',
    'PaginationWalker',
    'MentionNormalizer',
    'GraphSearchClient',
    'Brand',
    'BrandRecord',
    'FeedPage',
    'PersistedMention',
    'RawMention',
    'WalkState',
    'BrandCrawlerError',
    'ConfigurationError',
    'EmptyQueue',
    'FetchError',
    'MalformedCursor',
    'MalformedRecord',
    'StoreUnavailable'
]
