#!/usr/bin/env python3
"""
Data structures for the Brand Crawler
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

# Stored in place of a permalink: the search payload does not carry one
UNKNOWN_SOURCE_LINK = "n/a"

@dataclass(frozen=True)
class BrandRecord:
    """Brand row as loaded from the store"""
    name: str
    aliases: Tuple[str, ...] = ()

@dataclass
class Brand:
    """Brand plus its crawl bookkeeping

    last_crawled_at: high-water mark (Unix seconds), also the scheduling priority
    searched_depth: deepest cursor depth already walked
    pass_count: completed crawl cycles
    """
    name: str
    aliases: List[str] = field(default_factory=list)
    last_crawled_at: int = 0
    searched_depth: int = 0
    pass_count: int = 0

    @classmethod
    def from_record(cls, record: BrandRecord) -> 'Brand':
        return cls(name=record.name, aliases=list(record.aliases))

@dataclass
class RawMention:
    """Mention parsed from one feed record, before dedup"""
    text: str
    external_id: int
    timestamp: int

@dataclass
class PersistedMention:
    """Mention as written to the store"""
    name: str
    timestamp: int
    source: str
    text: str
    source_link: str = UNKNOWN_SOURCE_LINK

    def to_row(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'timestamp': self.timestamp,
            'source': self.source,
            'text': self.text,
            'source_link': self.source_link
        }

@dataclass
class FeedPage:
    """One page of search results: flat [text, id, time] records and the next cursor"""
    records: List[str]
    next_cursor: Optional[str] = None

@dataclass
class WalkState:
    """Per-walk accumulator, committed to the brand only after the walk completes"""
    threshold: int
    tentative_high_water: int = 0
    max_depth: int = 0
    pages_fetched: int = 0
    mentions: List[PersistedMention] = field(default_factory=list)
    seen: Set[Tuple[int, int, str]] = field(default_factory=set)
    malformed_fields: int = 0
    stop_reason: Optional[str] = None

    @property
    def reached_seen(self) -> bool:
        return self.stop_reason == "reached_seen"
