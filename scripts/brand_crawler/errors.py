#!/usr/bin/env python3
"""
Exceptions for the Brand Crawler
"""

class BrandCrawlerError(Exception):
    """Base exception for brand crawler errors"""
    pass

class ConfigurationError(BrandCrawlerError):
    """Configuration-related errors"""
    pass

class FetchError(BrandCrawlerError):
    """Feed transport failed for a page"""
    pass

class StoreUnavailable(BrandCrawlerError):
    """Brand/mention store unreachable or rejected the operation after retries"""
    pass

class MalformedRecord(BrandCrawlerError, ValueError):
    """A record field (id or timestamp) could not be parsed"""
    pass

class MalformedCursor(BrandCrawlerError, ValueError):
    """A next-page cursor carries no usable depth timestamp"""
    pass

class EmptyQueue(BrandCrawlerError):
    """No brand left to pop in the current sweep"""
    pass
