"""
Host admission: decides whether a host is worth crawling at all.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from cachetools import LRUCache

from .url_validator import CandidateURL

HostPredicate = Callable[[str], Awaitable[bool]]


class AllowAllHosts:
    """Admits every host."""

    async def __call__(self, hostname: str) -> bool:
        return True


class WordPressDetector:
    """
    Admits hosts that look like WordPress sites.

    Probes https://<host>/wp-admin: a 403, or a 200 whose body mentions
    WordPress, marks the host eligible. Any other outcome, including a
    network failure, does not.
    """

    def __init__(self, fetcher):
        self.fetcher = fetcher
        self.logger = logging.getLogger(__name__)

    async def __call__(self, hostname: str) -> bool:
        result = await self.fetcher.fetch(f"https://{hostname}/wp-admin")
        if result.error and result.status_code == 0:
            self.logger.debug(f"WordPress probe failed for {hostname}: {result.error}")
            return False
        if result.status_code == 403:
            return True
        if result.status_code == 200:
            return 'wordpress' in (result.content or '').lower()
        return False


class HostEligibility:
    """
    Caches the verdict of a host predicate per hostname in a bounded LRU.

    Verdicts are never invalidated. Usable directly as a URL validation rule.
    """

    def __init__(self, predicate: HostPredicate, cache_size: int = 1000):
        if cache_size < 1:
            raise ValueError(f"cache_size must be at least 1, got {cache_size}")
        self.predicate = predicate
        self.cache: LRUCache = LRUCache(maxsize=cache_size)
        self.logger = logging.getLogger(__name__)
        self.stats: Dict[str, int] = {'hits': 0, 'misses': 0}

    async def is_eligible(self, hostname: str) -> bool:
        hostname = hostname.lower()
        cached = self.cache.get(hostname)
        if cached is not None:
            self.stats['hits'] += 1
            return cached

        self.stats['misses'] += 1
        try:
            eligible = bool(await self.predicate(hostname))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.warning(f"Eligibility check failed for {hostname}: {e}")
            eligible = False
        self.cache[hostname] = eligible
        self.logger.debug(f"Host {hostname} eligible: {eligible}")
        return eligible

    async def __call__(self, candidate: CandidateURL) -> bool:
        if not candidate.hostname:
            return False
        return await self.is_eligible(candidate.hostname)
