"""Tests for near-duplicate detection and admission."""

import asyncio

from searchhouse.crawler.parser import ContentParser, WebPage
from searchhouse.storage.duplicate_detector import DuplicateDetector
from searchhouse.storage.fingerprints import generate_fingerprints

from .helpers import html_page

ARTICLE = (
    "WordPress powers a large share of the web and its plugin ecosystem lets site owners "
    "add features such as contact forms, galleries, newsletters and online stores without "
    "writing code. Themes control presentation while the block editor handles content."
)


def make_page(url, fingerprints):
    return WebPage(url=url, timestamp=0, status="200 OK", body="", fingerprints=frozenset(fingerprints))


def page_from_html(url, body):
    text = ContentParser().extract_text(body)
    return WebPage(url=url, timestamp=0, status="200 OK", body=body,
                   fingerprints=generate_fingerprints(text, 3, 10000))


def test_whitespace_only_change_is_duplicate():
    async def scenario():
        detector = DuplicateDetector(0.9)
        original = page_from_html("https://a.example/post", html_page(ARTICLE))
        reformatted = page_from_html(
            "https://mirror.example/post",
            html_page(ARTICLE.replace(" ", "\n   ")).replace("<p>", "\n\n<p>  ")
        )
        await detector.add_content(original)
        return original, await detector.check_duplicate(reformatted)

    original, match = asyncio.run(scenario())
    assert match is not None
    assert match.original is original
    assert match.similarity == 1.0


def test_ninety_five_percent_overlap_is_duplicate_and_not_indexed():
    shared = range(950)
    page_a = make_page("https://a.example/", list(shared) + list(range(950, 1000)))
    page_b = make_page("https://b.example/", list(shared) + list(range(5000, 5050)))

    async def scenario():
        detector = DuplicateDetector(0.9)
        await detector.add_content(page_a)
        match = await detector.check_duplicate(page_b)
        return detector, match

    detector, match = asyncio.run(scenario())
    assert match is not None
    assert match.original is page_a
    assert match.similarity > 0.9
    assert detector.index.page_count == 1
    assert 5000 not in detector.index


def test_below_threshold_is_not_duplicate():
    page_a = make_page("https://a.example/", range(100))
    page_b = make_page("https://b.example/", range(10, 110))

    async def scenario():
        detector = DuplicateDetector(0.9)
        await detector.add_content(page_a)
        return await detector.check_duplicate(page_b)

    assert asyncio.run(scenario()) is None


def test_threshold_must_be_exceeded():
    # 9 shared of 10 total: exactly 0.9
    page_a = make_page("https://a.example/", range(10))
    page_b = make_page("https://b.example/", range(9))

    async def scenario():
        detector = DuplicateDetector(0.9)
        await detector.add_content(page_a)
        return await detector.check_duplicate(page_b)

    assert asyncio.run(scenario()) is None


def test_same_url_is_not_its_own_duplicate():
    page = make_page("https://a.example/", range(20))
    refetch = make_page("https://a.example/", range(20))

    async def scenario():
        detector = DuplicateDetector(0.9)
        await detector.add_content(page)
        return await detector.check_duplicate(refetch)

    assert asyncio.run(scenario()) is None


def test_first_admitted_page_stays_the_original():
    original = make_page("https://a.example/", range(100))
    copy_one = make_page("https://b.example/", range(100))
    copy_two = make_page("https://c.example/", range(100))

    async def scenario():
        detector = DuplicateDetector(0.9)
        await detector.add_content(original)
        first = await detector.check_duplicate(copy_one)
        second = await detector.check_duplicate(copy_two)
        return first, second

    first, second = asyncio.run(scenario())
    assert first.original is original
    assert second.original is original


def test_check_and_admit_admits_only_first_of_concurrent_duplicates():
    pages = [make_page(f"https://host{i}.example/", range(200)) for i in range(5)]

    async def scenario():
        detector = DuplicateDetector(0.9)
        results = await asyncio.gather(*(detector.check_and_admit(page) for page in pages))
        return detector, results

    detector, results = asyncio.run(scenario())
    assert sum(1 for match in results if match is None) == 1
    assert detector.index.page_count == 1


def test_stats():
    async def scenario():
        detector = DuplicateDetector(0.9)
        await detector.check_and_admit(make_page("https://a.example/", range(10)))
        await detector.check_and_admit(make_page("https://b.example/", range(10)))
        return detector.get_stats()

    stats = asyncio.run(scenario())
    assert stats['total_checks'] == 2
    assert stats['near_duplicates'] == 1
    assert stats['pages_admitted'] == 1
    assert stats['indexed_pages'] == 1
    assert stats['indexed_fingerprints'] == 10
