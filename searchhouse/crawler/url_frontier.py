"""
URL Frontier implementation for managing URLs to crawl.
Partitions pending URLs into per-shard Redis lists so that each worker
drains only the shard it owns.
"""

import logging
import time
from typing import Dict, Optional, List
from dataclasses import dataclass, field
import redis.asyncio as redis
from redis.exceptions import RedisError

from ..exceptions import FrontierError


@dataclass
class URLEntry:
    """A pending URL and the shard that owns it."""
    url: str
    owner_shard: int
    discovered_time: float = field(default_factory=time.time)


class URLFrontier:
    """
    Durable, shard-partitioned queue of discovered URLs.

    Any worker may insert into any shard; each shard is popped by exactly one
    worker. Entries are not deduplicated here, so the same URL may be queued
    more than once when two workers discover it concurrently.
    """

    def __init__(self, redis_client: redis.Redis, num_shards: int,
                 key_prefix: str = "crawler:frontier"):
        if num_shards < 1:
            raise ValueError(f"num_shards must be at least 1, got {num_shards}")
        self.redis_client = redis_client
        self.num_shards = num_shards
        self.logger = logging.getLogger(__name__)

        # Redis keys
        self.key_prefix = key_prefix
        self.num_shards_key = f"{key_prefix}:num_shards"
        self.shard_key_prefix = f"{key_prefix}:shard:"

    def _shard_key(self, shard: int) -> str:
        return f"{self.shard_key_prefix}{shard}"

    def _check_shard(self, shard: int):
        if not 0 <= shard < self.num_shards:
            raise ValueError(f"Shard {shard} out of range for {self.num_shards} shards")

    async def initialize(self, reset: bool = False):
        """
        Prepare the store for this shard count.

        A store created with a different shard count holds entries whose
        owner shards no worker polls any more; refuse to start on it unless
        reset is requested.
        """
        try:
            if reset:
                await self.reset()

            stored = await self.redis_client.get(self.num_shards_key)
            if stored is None:
                await self.redis_client.set(self.num_shards_key, self.num_shards)
            elif int(stored) != self.num_shards:
                raise FrontierError(
                    f"Frontier was created with {int(stored)} shards but {self.num_shards} "
                    f"were requested; reset the frontier to change the shard count"
                )

            stats = await self.get_stats()
            self.logger.info(f"Initialized URL frontier with {self.num_shards} shards, "
                             f"{stats['total_queued']} URLs pending")

        except RedisError as e:
            raise FrontierError(f"Error initializing URL frontier: {e}") from e

    async def reset(self):
        """Delete every shard queue and the recorded shard count."""
        try:
            keys = [key async for key in self.redis_client.scan_iter(match=f"{self.shard_key_prefix}*")]
            keys.append(self.num_shards_key)
            await self.redis_client.delete(*keys)
            self.logger.warning(f"Reset URL frontier ({len(keys) - 1} shard queues removed)")
        except RedisError as e:
            raise FrontierError(f"Error resetting URL frontier: {e}") from e

    async def insert_url(self, url: str, shard: int):
        """Append a URL to the durable queue of its owning shard."""
        self._check_shard(shard)
        try:
            await self.redis_client.rpush(self._shard_key(shard), url)
            self.logger.debug(f"Added URL to shard {shard}: {url}")
        except RedisError as e:
            raise FrontierError(f"Error adding URL to shard {shard}: {e}") from e

    async def insert_entry(self, entry: URLEntry):
        await self.insert_url(entry.url, entry.owner_shard)

    async def pop_url(self, shard: int) -> Optional[str]:
        """
        Remove and return the oldest pending URL of a shard.
        Returns None without blocking when the shard is empty.
        """
        self._check_shard(shard)
        try:
            item = await self.redis_client.lpop(self._shard_key(shard))
        except RedisError as e:
            raise FrontierError(f"Error popping URL from shard {shard}: {e}") from e

        if item is None:
            return None
        url = item.decode('utf-8') if isinstance(item, bytes) else item
        self.logger.debug(f"Retrieved URL from shard {shard}: {url}")
        return url

    async def queue_size(self, shard: int) -> int:
        self._check_shard(shard)
        try:
            return await self.redis_client.llen(self._shard_key(shard))
        except RedisError as e:
            raise FrontierError(f"Error reading size of shard {shard}: {e}") from e

    async def get_stats(self) -> Dict[str, object]:
        """Get frontier statistics."""
        sizes: List[int] = [await self.queue_size(shard) for shard in range(self.num_shards)]
        return {
            'total_queued': sum(sizes),
            'shard_sizes': sizes,
            'num_shards': self.num_shards,
        }

    async def is_empty(self) -> bool:
        """Check if every shard is empty."""
        stats = await self.get_stats()
        return stats['total_queued'] == 0
