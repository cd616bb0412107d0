#!/usr/bin/env python3
"""
Graph feed-search client for the Brand Crawler
Page fetcher with rate limiting and retry logic
"""
import time
import random
import logging
import requests
from typing import Any, Dict, Optional

from config import CrawlerConfig

from .errors import FetchError
from .models import FeedPage
from .page_parser import parse_page

logger = logging.getLogger(__name__)

BACKOFF_DELAYS = [0.25, 0.5, 1.0, 2.0, 4.0]

class GraphSearchClient:
    """Post search against the Graph API, one page per call"""

    def __init__(self, crawler_config: CrawlerConfig, access_token: Optional[str] = None, session=None):
        self.base_url = crawler_config.base_url.rstrip('/')
        self.page_limit = crawler_config.page_limit
        self.timeout_s = crawler_config.http.timeout_s
        self.user_agent = crawler_config.http.user_agent
        self.max_retries = max(1, crawler_config.http.max_retries)
        self.min_delay_s = crawler_config.http.min_delay_s
        self.access_token = access_token
        self.session = session or requests.Session()
        self.last_request_time = 0.0
        self.requests_made = 0
        self.error_429_count = 0

    def search_params(self, query: str) -> Dict[str, Any]:
        params = {
            'fields': 'message',
            'q': query,
            'type': 'post',
            'limit': self.page_limit
        }
        if self.access_token:
            params['access_token'] = self.access_token
        return params

    def fetch_page(self, query: str, cursor: Optional[str] = None) -> FeedPage:
        """
        Fetch one result page

        Args:
            query: Brand name to search for (first page only)
            cursor: Next-page URL from the previous page, None for the first page

        Returns:
            Parsed FeedPage

        Raises:
            FetchError: transport failure after retries
        """
        if cursor:
            data = self._retry_request(cursor, None)
        else:
            data = self._retry_request(f"{self.base_url}/search", self.search_params(query))
        return parse_page(data)

    def _rate_limit_delay(self):
        """Keep at least min_delay_s between requests"""
        if self.min_delay_s <= 0:
            return
        time_since_last = time.time() - self.last_request_time
        if time_since_last < self.min_delay_s:
            # Add jitter (100-300ms)
            time.sleep(self.min_delay_s - time_since_last + random.uniform(0.1, 0.3))
        self.last_request_time = time.time()

    def _backoff(self, attempt: int) -> float:
        return BACKOFF_DELAYS[min(attempt, len(BACKOFF_DELAYS) - 1)]

    def _retry_request(self, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """GET with exponential backoff on timeouts, connection errors, 429 and 5xx"""
        for attempt in range(self.max_retries):
            try:
                self._rate_limit_delay()
                self.requests_made += 1
                response = self.session.get(url, params=params, timeout=self.timeout_s,
                                            headers={'User-Agent': self.user_agent})
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                delay = self._backoff(attempt)
                logger.warning(f"Request failed ({type(e).__name__}), retrying in {delay}s (attempt {attempt+1}/{self.max_retries})")
                time.sleep(delay)
                continue
            except requests.exceptions.RequestException as e:
                raise FetchError(f"Request failed: {e}") from e

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    raise FetchError(f"Invalid JSON in feed response: {e}") from e
            elif response.status_code == 429:
                self.error_429_count += 1
                try:
                    retry_after = float(response.headers.get('Retry-After', self._backoff(attempt)))
                except ValueError:
                    retry_after = self._backoff(attempt)
                logger.warning(f"Rate limited (429), retry after {retry_after}s (attempt {attempt+1}/{self.max_retries})")
                time.sleep(retry_after)
            elif response.status_code >= 500:
                delay = self._backoff(attempt)
                logger.warning(f"Server error {response.status_code}, retrying in {delay}s (attempt {attempt+1}/{self.max_retries})")
                time.sleep(delay)
            else:
                raise FetchError(f"Feed request failed with status {response.status_code}: {response.text[:200]}")

        raise FetchError(f"Feed request gave up after {self.max_retries} attempts: {url}")
