"""
Exception hierarchy for the crawler.

Storage failures (frontier and page store) are fatal to the crawl; network
failures never surface as exceptions outside the worker.
"""


class CrawlerError(Exception):
    """Base class for crawler errors."""
    pass


class ConfigError(CrawlerError, ValueError):
    """Invalid or missing configuration."""
    pass


class FrontierError(CrawlerError):
    """The durable frontier store failed or is inconsistent."""
    pass


class PageStoreError(CrawlerError):
    """The page directory could not be read or written."""
    pass
