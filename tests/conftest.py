"""Shared fixtures for the crawler tests."""

import sys
from pathlib import Path

import fakeredis
import fakeredis.aioredis
import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from searchhouse.crawler.host_eligibility import AllowAllHosts, HostEligibility
from searchhouse.crawler.parser import ContentParser
from searchhouse.crawler.shard_router import ShardRouter
from searchhouse.crawler.url_frontier import URLFrontier
from searchhouse.crawler.url_validator import URLValidator
from searchhouse.crawler.worker import CrawlContext
from searchhouse.storage.duplicate_detector import DuplicateDetector
from searchhouse.storage.page_store import PageStore
from searchhouse.utils.config import CrawlerConfig, DedupConfig
from searchhouse.utils.monitoring import CrawlerMonitor

from .helpers import StubFetcher


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def make_redis(redis_server):
    """Factory for clients sharing one fake server; a new client simulates a restart."""
    def factory():
        return fakeredis.aioredis.FakeRedis(server=redis_server)
    return factory


@pytest.fixture
def stub_fetcher():
    return StubFetcher()


@pytest.fixture
def make_context(tmp_path, make_redis, stub_fetcher):
    """Factory building a CrawlContext; call it inside the running event loop."""
    def factory(num_shards: int = 4, atomic_admission: bool = False,
                max_links: int = 20, host_predicate=None) -> CrawlContext:
        page_store = PageStore.from_directory(str(tmp_path / 'pages'))
        page_store.initialize()
        eligibility = HostEligibility(host_predicate or AllowAllHosts())
        return CrawlContext(
            frontier=URLFrontier(make_redis(), num_shards, key_prefix='test:frontier'),
            router=ShardRouter(num_shards),
            page_store=page_store,
            detector=DuplicateDetector(0.9),
            validator=URLValidator().with_rule(eligibility),
            fetcher=stub_fetcher,
            parser=ContentParser(),
            crawler_config=CrawlerConfig(
                num_workers=num_shards,
                page_directory=str(tmp_path / 'pages'),
                max_links_per_page=max_links,
                idle_delay=0.01,
                fetch_delay=0.01,
                host_filter='any'
            ),
            dedup_config=DedupConfig(atomic_admission=atomic_admission),
            monitor=CrawlerMonitor()
        )
    return factory
