#!/usr/bin/env python3
"""
Feed page parsing for the Brand Crawler
Extracts flat [message, id, created_time] records, the next-page cursor and its depth
"""
import logging
from urllib.parse import urlparse, parse_qs
from typing import Any, Dict, List, Optional

from .errors import FetchError, MalformedCursor
from .models import FeedPage

logger = logging.getLogger(__name__)

def post_id(raw_id: Any) -> str:
    """Keep the post part of an '<owner>_<post>' id"""
    raw_id = '' if raw_id is None else str(raw_id)
    _, sep, tail = raw_id.partition('_')
    return tail if sep else raw_id

def next_cursor(payload: Dict[str, Any]) -> Optional[str]:
    paging = payload.get('paging') or {}
    if not isinstance(paging, dict):
        raise FetchError(f"Unexpected 'paging' in feed response: {type(paging).__name__}")
    cursor = paging.get('next')
    if cursor and not isinstance(cursor, str):
        raise FetchError(f"Unexpected next cursor in feed response: {type(cursor).__name__}")
    return cursor or None

def parse_page(payload: Any) -> FeedPage:
    """
    Convert a search response into a FeedPage

    Items without a message carry nothing to track and are skipped.

    Raises:
        FetchError: the response is not a search result object
    """
    if not isinstance(payload, dict):
        raise FetchError(f"Unexpected feed response: {type(payload).__name__}")
    data = payload.get('data')
    if data is None:
        data = []
    if not isinstance(data, list):
        raise FetchError(f"Unexpected 'data' in feed response: {type(data).__name__}")

    records: List[str] = []
    for item in data:
        if not isinstance(item, dict) or 'message' not in item:
            continue
        records.extend([
            str(item.get('message') or ''),
            post_id(item.get('id')),
            str(item.get('created_time') or '')
        ])

    page = FeedPage(records=records, next_cursor=next_cursor(payload))
    logger.debug(f"Parsed page: {len(records) // 3} records, next={'yes' if page.next_cursor else 'no'}")
    return page

def cursor_depth(cursor: str) -> int:
    """
    Depth timestamp embedded in a next-page cursor (its 'until' parameter)

    Raises:
        MalformedCursor: no 'until' parameter or not an integer
    """
    values = parse_qs(urlparse(cursor or '').query).get('until')
    if not values:
        raise MalformedCursor(f"cursor has no 'until' parameter: {cursor!r}")
    try:
        return int(values[-1])
    except ValueError:
        raise MalformedCursor(f"cursor 'until' is not an integer: {values[-1]!r}")
