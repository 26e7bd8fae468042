"""Tests for the ordered URL validation rules."""

import asyncio
from urllib.parse import urlsplit

import pytest

from searchhouse.crawler.url_validator import (
    CandidateURL,
    ExtensionBlocklist,
    StructuralPattern,
    URLValidator,
)


def is_valid(validator, url):
    return asyncio.run(validator.is_valid(url))


@pytest.mark.parametrize("url", [
    "https://a.example/x",
    "https://blog.example.com",
    "https://blog.example.com/2024/01/hello-world",
    "https://blog.example.com/search?q=python&page=2",
    "https://blog.example.com/index.html",
    "https://blog.example.com:8443/about",
])
def test_accepts_crawlable_urls(url):
    assert is_valid(URLValidator(), url)


@pytest.mark.parametrize("url", [
    "http://blog.example.com/",
    "ftp://blog.example.com/file",
    "https://localhost/path",
    "https://blog.example.com/page#section",
    "https://blog.example.com/a path",
    "mailto:someone@example.com",
    "/relative/path",
    "",
])
def test_rejects_structurally_invalid_urls(url):
    assert not is_valid(URLValidator(), url)


@pytest.mark.parametrize("url", [
    "https://site.test/doc.pdf",
    "https://site.test/styles/main.CSS",
    "https://site.test/images/photo.jpeg",
    "https://site.test/archive.tar",
    "https://site.test/downloads/setup.exe?version=2",
])
def test_rejects_blocked_extensions(url):
    assert not is_valid(URLValidator(), url)


def test_extension_blocklist_only_checks_last_segment():
    rule = ExtensionBlocklist()
    assert rule(CandidateURL.parse("https://site.test/v1.2/page"))
    assert rule(CandidateURL.parse("https://site.test/"))
    assert not rule(CandidateURL.parse("https://site.test/notes.txt"))


def test_custom_extension_blocklist():
    rule = ExtensionBlocklist(['.php'])
    assert not rule(CandidateURL.parse("https://site.test/index.php"))
    assert rule(CandidateURL.parse("https://site.test/doc.pdf"))


def test_structural_pattern_requires_https():
    rule = StructuralPattern()
    assert rule(CandidateURL.parse("https://site.test/page"))
    assert not rule(CandidateURL.parse("http://site.test/page"))


def test_rules_run_in_order_and_stop_at_first_rejection():
    calls = []

    async def host_rule(candidate):
        calls.append(candidate.hostname)
        return candidate.hostname != "blocked.example"

    validator = URLValidator().with_rule(host_rule)
    assert is_valid(validator, "https://allowed.example/page")
    assert not is_valid(validator, "https://blocked.example/page")
    assert not is_valid(validator, "https://allowed.example/file.pdf")
    assert calls == ["allowed.example", "blocked.example"]


def test_with_rule_does_not_modify_original():
    base = URLValidator()
    extended = base.with_rule(lambda candidate: False)
    assert len(extended.rules) == len(base.rules) + 1
    assert is_valid(base, "https://a.example/x")
    assert not is_valid(extended, "https://a.example/x")


def test_candidate_parse_rejects_bad_port():
    assert CandidateURL.parse("https://a.example:notaport/") is None


@pytest.mark.parametrize("url", [
    "https://a.example/x\n",
    "https://a.example/x\r\n",
    "https://a.example\n",
])
def test_rejects_trailing_line_breaks(url):
    assert not is_valid(URLValidator(), url)
    assert not StructuralPattern()(CandidateURL(raw=url, parts=urlsplit(url)))
