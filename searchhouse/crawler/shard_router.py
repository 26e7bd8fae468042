"""
Shard routing: maps hostnames to worker shards.

Every URL of a host lands on the same shard, so exactly one worker ever
talks to that host. Together with the worker's fixed inter-fetch delay this
is the crawler's politeness policy.
"""

from typing import Optional
from urllib.parse import urlparse

from ..utils.hashing import fnv1a_64, to_signed64


def get_hostname(url: str) -> str:
    """Extract the lower-cased hostname from a URL, or '' if there is none."""
    try:
        return (urlparse(url).hostname or '').lower()
    except ValueError:
        return ''


def shard_of(hostname: str, num_shards: int) -> int:
    """Return the shard owning hostname for a fixed shard count."""
    if num_shards < 1:
        raise ValueError(f"num_shards must be at least 1, got {num_shards}")
    return abs(to_signed64(fnv1a_64(hostname))) % num_shards


class ShardRouter:
    """Routes URLs to shards for a fixed shard count."""

    def __init__(self, num_shards: int):
        if num_shards < 1:
            raise ValueError(f"num_shards must be at least 1, got {num_shards}")
        self.num_shards = num_shards

    def shard_for_host(self, hostname: str) -> int:
        return shard_of(hostname.lower(), self.num_shards)

    def shard_for_url(self, url: str) -> Optional[int]:
        """Shard owning the URL's host, or None when the URL has no host."""
        hostname = get_hostname(url)
        if not hostname:
            return None
        return shard_of(hostname, self.num_shards)
