"""
Crawler scheduler that wires the shared components together and supervises
one worker per frontier shard.
"""

import asyncio
import logging
from typing import Dict, List, Optional
import redis.asyncio as redis
from redis.exceptions import RedisError

from .fetcher import WebFetcher
from .host_eligibility import AllowAllHosts, HostEligibility, WordPressDetector
from .parser import ContentParser
from .shard_router import ShardRouter
from .url_frontier import URLFrontier
from .url_validator import URLValidator
from .worker import CrawlContext, ShardWorker
from ..exceptions import FrontierError
from ..storage.duplicate_detector import DuplicateDetector
from ..storage.page_store import PageStore
from ..utils.config import Config
from ..utils.monitoring import CrawlerMonitor


class CrawlerScheduler:
    """
    Owns every piece of state shared between workers (frontier, fingerprint
    index, page store lock, host eligibility cache) and runs one ShardWorker
    per shard.

    Seeds always enter shard 0. Workers run until stop_crawling() is called;
    a storage failure in any worker cancels the others and is re-raised.
    """

    SEED_SHARD = 0

    def __init__(self, config: Config, redis_client: Optional[redis.Redis] = None,
                 fetcher: Optional[WebFetcher] = None, monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.num_shards = config.crawler.num_workers

        # Components
        self.redis_client = redis_client
        self._owns_redis = redis_client is None
        self.fetcher = fetcher
        self.monitor = monitor or CrawlerMonitor()
        self.url_frontier: Optional[URLFrontier] = None
        self.page_store: Optional[PageStore] = None
        self.duplicate_detector: Optional[DuplicateDetector] = None
        self.host_eligibility: Optional[HostEligibility] = None
        self.context: Optional[CrawlContext] = None

        # Crawl state
        self.stop_event = asyncio.Event()
        self.workers: List[ShardWorker] = []
        self.tasks: List[asyncio.Task] = []
        self.is_running = False

    async def initialize(self):
        """Initialize all crawler components."""
        if self.redis_client is None:
            redis_config = self.config.redis
            try:
                self.redis_client = redis.Redis(
                    host=redis_config.host,
                    port=redis_config.port,
                    db=redis_config.db,
                    password=redis_config.password,
                    decode_responses=False
                )
                await self.redis_client.ping()
            except RedisError as e:
                raise FrontierError(
                    f"Cannot reach frontier store at {redis_config.host}:{redis_config.port}: {e}"
                ) from e
            self.logger.info("Redis connection established")

        self.url_frontier = URLFrontier(
            self.redis_client,
            self.num_shards,
            key_prefix=self.config.redis.frontier_key
        )
        await self.url_frontier.initialize(reset=self.config.frontier.reset_on_start)

        if self.fetcher is None:
            self.fetcher = WebFetcher(
                user_agent=self.config.crawler.user_agent,
                request_timeout=self.config.crawler.request_timeout,
                max_content_bytes=self.config.crawler.max_content_bytes
            )
        await self.fetcher.start()

        self.page_store = PageStore.from_directory(self.config.crawler.page_directory)
        self.page_store.initialize()

        self.duplicate_detector = DuplicateDetector(self.config.dedup.similarity_threshold)

        if self.config.crawler.host_filter == 'wordpress':
            predicate = WordPressDetector(self.fetcher)
        else:
            predicate = AllowAllHosts()
        self.host_eligibility = HostEligibility(predicate, self.config.crawler.host_cache_size)

        self.context = CrawlContext(
            frontier=self.url_frontier,
            router=ShardRouter(self.num_shards),
            page_store=self.page_store,
            detector=self.duplicate_detector,
            validator=URLValidator().with_rule(self.host_eligibility),
            fetcher=self.fetcher,
            parser=ContentParser(),
            crawler_config=self.config.crawler,
            dedup_config=self.config.dedup,
            monitor=self.monitor,
            stop_event=self.stop_event
        )

        self.logger.info(f"Crawler scheduler initialized with {self.num_shards} shards")

    async def add_seed_urls(self, seed_urls: Optional[List[str]] = None) -> int:
        """Queue seed URLs that have not been fetched yet on shard 0."""
        added = 0
        for url in seed_urls if seed_urls is not None else self.config.crawler.seed_urls:
            if not await self.page_store.page_exists(url):
                await self.url_frontier.insert_url(url, self.SEED_SHARD)
                added += 1
        self.logger.info(f"Added {added} seed URLs to frontier")
        return added

    async def start_crawling(self):
        """Seed the frontier, start one worker per shard and wait for them."""
        if self.is_running:
            self.logger.warning("Crawler is already running")
            return
        if self.context is None:
            raise RuntimeError("Scheduler not initialized. Call initialize() first.")

        self.is_running = True
        self.stop_event.clear()
        try:
            await self.add_seed_urls()

            self.workers = [ShardWorker(shard, self.context) for shard in range(self.num_shards)]
            self.tasks = [
                asyncio.create_task(worker.run(), name=f"shard-worker-{worker.shard}")
                for worker in self.workers
            ]
            stats_task = asyncio.create_task(self._stats_reporter())
            self.logger.info(f"Started crawling with {len(self.workers)} workers")

            try:
                # The first failure is fatal for the whole crawl
                await asyncio.gather(*self.tasks)
            finally:
                stats_task.cancel()
                await asyncio.gather(stats_task, return_exceptions=True)
                await self._cleanup_workers()

            await self._log_final_stats()
        finally:
            self.is_running = False

    async def _stats_reporter(self, interval: float = 30.0):
        """Periodically log crawl statistics."""
        while not self.stop_event.is_set():
            await asyncio.sleep(interval)
            await self._log_current_stats()

    async def _log_current_stats(self):
        frontier_stats = await self.url_frontier.get_stats()
        for shard, size in enumerate(frontier_stats['shard_sizes']):
            self.monitor.update_queue_size(shard, size)

        totals = self.get_stats()
        self.logger.info(
            f"Crawl Progress: "
            f"Stored={totals.get('stored', 0)}, "
            f"Duplicates={totals.get('duplicate', 0)}, "
            f"FetchFailed={totals.get('fetch_failed', 0)}, "
            f"Queued={frontier_stats['total_queued']}"
        )

    async def _log_final_stats(self):
        self.logger.info("=== CRAWL STOPPED ===")
        self.logger.info(f"Worker totals: {self.get_stats()}")
        self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
        self.logger.info(f"Duplicate detection stats: {self.duplicate_detector.get_stats()}")
        self.logger.info(f"Page store stats: {self.page_store.get_stats()}")
        self.logger.info(f"Frontier stats: {await self.url_frontier.get_stats()}")

    async def stop_crawling(self):
        """Signal workers to stop after the URL each is processing."""
        self.logger.info("Stopping crawler...")
        self.stop_event.set()

    async def _cleanup_workers(self):
        """Stop every worker and wait for all of them to finish."""
        self.stop_event.set()
        for task in self.tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()

    async def close(self):
        """Close all connections and cleanup resources."""
        self.stop_event.set()
        await self._cleanup_workers()

        if self.fetcher:
            await self.fetcher.close()

        if self.redis_client is not None and self._owns_redis:
            await self.redis_client.aclose()

        self.logger.info("Crawler scheduler closed")

    def get_stats(self) -> Dict[str, int]:
        """Sum of per-worker statistics."""
        totals: Dict[str, int] = {}
        for worker in self.workers:
            for key, value in worker.get_stats().items():
                totals[key] = totals.get(key, 0) + value
        return totals
