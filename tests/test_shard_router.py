"""Tests for hostname hashing and shard routing."""

import pytest

from searchhouse.crawler.shard_router import ShardRouter, get_hostname, shard_of
from searchhouse.utils.hashing import fnv1a_64, to_signed64


def test_fnv1a_64_reference_values():
    assert fnv1a_64("") == 0xcbf29ce484222325
    assert fnv1a_64("a") == 0xaf63dc4c8601ec8c
    assert fnv1a_64("foobar") == 0x85944171f73967e8


def test_to_signed64():
    assert to_signed64(5) == 5
    assert to_signed64((1 << 63) - 1) == (1 << 63) - 1
    assert to_signed64(1 << 63) == -(1 << 63)
    assert to_signed64((1 << 64) - 1) == -1


def test_shard_of_matches_signed_abs_mod():
    for host in ["a.example", "blog.site.test", "news.wordpress.org"]:
        expected = abs(to_signed64(fnv1a_64(host))) % 7
        assert shard_of(host, 7) == expected


def test_shard_of_in_range():
    for i in range(200):
        assert 0 <= shard_of(f"host{i}.example", 5) < 5


def test_single_shard_routes_everything_to_zero():
    assert shard_of("anything.example", 1) == 0


def test_invalid_shard_count():
    with pytest.raises(ValueError):
        shard_of("a.example", 0)
    with pytest.raises(ValueError):
        ShardRouter(0)


@pytest.mark.parametrize("num_shards", [1, 2, 3, 4, 16])
def test_urls_sharing_a_host_share_a_shard(num_shards):
    router = ShardRouter(num_shards)
    urls = [
        "https://blog.example/",
        "https://blog.example/about",
        "https://blog.example/2024/01/post?page=2",
        "https://BLOG.example/contact",
    ]
    shards = {router.shard_for_url(url) for url in urls}
    assert len(shards) == 1


def test_shard_for_url_without_host():
    assert ShardRouter(4).shard_for_url("mailto:someone@example.com") is None


def test_get_hostname():
    assert get_hostname("https://Sub.Example.com:8443/path") == "sub.example.com"
    assert get_hostname("/relative/path") == ""
