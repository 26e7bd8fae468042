"""
Per-shard crawl worker.

A worker polls only its own frontier shard and runs each URL through a
sequential pipeline: validate, check fetched, fetch, read body, validate
HTML, dedup check, admit and persist, discover links. Discovered links are
routed to the shard owning their host, which may belong to another worker.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlsplit

from .fetcher import WebFetcher
from .parser import ContentParser, WebPage
from .shard_router import ShardRouter, get_hostname
from .url_frontier import URLEntry, URLFrontier
from .url_validator import URLValidator
from ..storage.duplicate_detector import DuplicateDetector
from ..storage.fingerprints import generate_fingerprints
from ..storage.page_store import PageStore
from ..utils.config import CrawlerConfig, DedupConfig
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class CrawlOutcome(Enum):
    """How the pipeline ended for a single URL."""
    INVALID_URL = "invalid_url"
    ALREADY_FETCHED = "already_fetched"
    FETCH_FAILED = "fetch_failed"
    BODY_READ_FAILED = "body_read_failed"
    INVALID_HTML = "invalid_html"
    DUPLICATE = "duplicate"
    STORED = "stored"

    @property
    def fetched(self) -> bool:
        """Whether a request was sent; only then does the worker pause."""
        return self not in (CrawlOutcome.INVALID_URL, CrawlOutcome.ALREADY_FETCHED)


@dataclass
class CrawlContext:
    """Collaborators shared by every worker, owned by the scheduler."""
    frontier: URLFrontier
    router: ShardRouter
    page_store: PageStore
    detector: DuplicateDetector
    validator: URLValidator
    fetcher: WebFetcher
    parser: ContentParser
    crawler_config: CrawlerConfig
    dedup_config: DedupConfig
    monitor: CrawlerMonitor = field(default_factory=CrawlerMonitor)
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)


def construct_proper_urls(hrefs: Iterable[str], root_url: str) -> List[str]:
    """
    Turn raw anchor hrefs into absolute URLs relative to root_url's host.

    Fragments are stripped and fragment-only links dropped, root-relative
    paths are joined to the root's scheme and host, protocol-relative links
    get https, and a single trailing slash is removed. The result is
    deduplicated and keeps first-seen order.
    """
    parts = urlsplit(root_url)
    if not parts.netloc:
        return []
    origin = f"{parts.scheme or 'https'}://{parts.netloc}"

    proper: Dict[str, None] = {}
    for href in hrefs:
        href = href.strip().split('#', 1)[0]
        if not href:
            continue
        if href.startswith('//'):
            url = 'https:' + href
        elif href.startswith('/'):
            url = origin + href
        else:
            url = href
        if url.endswith('/'):
            url = url[:-1]
        proper.setdefault(url, None)
    return list(proper)


class ShardWorker:
    """Crawls the URLs of one frontier shard until the stop event is set."""

    def __init__(self, shard: int, context: CrawlContext):
        self.shard = shard
        self.ctx = context
        self.logger = get_crawler_logger(__name__, shard=shard)
        self.stats: Dict[str, int] = {outcome.value: 0 for outcome in CrawlOutcome}
        self.stats['urls_queued'] = 0

    @property
    def stopped(self) -> bool:
        return self.ctx.stop_event.is_set()

    async def _sleep(self, seconds: float):
        """Sleep, waking early when the stop event is set."""
        if seconds <= 0 or self.stopped:
            return
        try:
            await asyncio.wait_for(self.ctx.stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self):
        """Poll the shard until stopped. Storage errors propagate."""
        self.logger.info("Worker started")
        self.ctx.monitor.active_workers.inc()
        try:
            while not self.stopped:
                url = await self.ctx.frontier.pop_url(self.shard)
                if url is None:
                    await self._sleep(self.ctx.crawler_config.idle_delay)
                    continue

                outcome = await self.process_url(url)
                self.stats[outcome.value] += 1
                if outcome.fetched:
                    await self._sleep(self.ctx.crawler_config.fetch_delay)
        finally:
            self.ctx.monitor.active_workers.dec()
            self.logger.info(f"Worker stopped: {self.stats}")

    async def process_url(self, url: str) -> CrawlOutcome:
        """Run one URL through the crawl pipeline."""
        ctx = self.ctx

        if not await ctx.validator.is_valid(url):
            ctx.monitor.record_rejected(CrawlOutcome.INVALID_URL.value)
            return CrawlOutcome.INVALID_URL

        if await ctx.page_store.page_exists(url):
            ctx.monitor.record_rejected(CrawlOutcome.ALREADY_FETCHED.value)
            return CrawlOutcome.ALREADY_FETCHED

        result = await ctx.fetcher.fetch(url)
        ctx.monitor.record_fetch(result.status_code, result.fetch_time)

        if result.status_code != 200:
            self.logger.log_url_event(
                logging.INFO, url,
                f"Response: {result.status or result.error}, URL: {url}"
            )
            ctx.monitor.record_error(CrawlOutcome.FETCH_FAILED.value)
            return CrawlOutcome.FETCH_FAILED

        self.logger.log_url_event(logging.INFO, url, f"Response: {result.status}, URL: {url}")

        if not result.ok:
            self.logger.warning(f"Could not read body of {url}: {result.error}")
            ctx.monitor.record_error(CrawlOutcome.BODY_READ_FAILED.value)
            return CrawlOutcome.BODY_READ_FAILED

        body = result.content
        if not ctx.parser.is_valid_html(body):
            self.logger.info(f"Skipped {url} since the HTML does not appear valid")
            ctx.monitor.record_error(CrawlOutcome.INVALID_HTML.value)
            return CrawlOutcome.INVALID_HTML

        page = self.build_page(url, result.status, body)

        if ctx.dedup_config.atomic_admission:
            match = await ctx.detector.check_and_admit(page)
        else:
            match = await ctx.detector.check_duplicate(page)
            if match is None:
                await ctx.detector.add_content(page)

        if match is not None:
            self.logger.info(
                f"Skipped {url} since it has a near match: {match.original.url} "
                f"(similarity {match.similarity:.4f})"
            )
            ctx.monitor.record_duplicate_skipped()
            return CrawlOutcome.DUPLICATE

        if await ctx.page_store.store_page(page):
            ctx.monitor.record_page_stored()

        queued = await self.discover_links(page)
        self.logger.debug(f"Queued {queued} new URLs from {url}")
        return CrawlOutcome.STORED

    def build_page(self, url: str, status: str, body: str) -> WebPage:
        dedup = self.ctx.dedup_config
        text = self.ctx.parser.extract_text(body)
        return WebPage(
            url=url,
            timestamp=int(time.time()),
            status=status,
            body=body,
            fingerprints=generate_fingerprints(text, dedup.shingle_size, dedup.fingerprint_capacity)
        )

    async def discover_links(self, page: WebPage) -> int:
        """Queue the page's new, valid links on the shards owning their hosts."""
        ctx = self.ctx
        hrefs = ctx.parser.extract_links(page.body, ctx.crawler_config.max_links_per_page)

        queued = 0
        for url in construct_proper_urls(hrefs, page.url):
            if not await ctx.validator.is_valid(url):
                continue
            if await ctx.page_store.page_exists(url):
                continue
            shard = ctx.router.shard_for_host(get_hostname(url))
            await ctx.frontier.insert_entry(URLEntry(url=url, owner_shard=shard))
            queued += 1

        if queued:
            ctx.monitor.record_queued(queued)
        self.stats['urls_queued'] += queued
        return queued

    def get_stats(self) -> Dict[str, int]:
        return dict(self.stats)
