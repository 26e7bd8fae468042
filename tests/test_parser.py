"""Tests for HTML validation, text and link extraction."""

import pytest

from searchhouse.crawler.parser import ContentParser, WebPage


@pytest.mark.parametrize("body", [
    "<!DOCTYPE html><html></html>",
    "<!doctype html><html></html>",
    "\n\n   \t<!DocType HTML>\n<html></html>",
])
def test_valid_html(body):
    assert ContentParser().is_valid_html(body)


@pytest.mark.parametrize("body", [
    "<html><body>no doctype</body></html>",
    "{\"json\": true}",
    "",
    "text <!DOCTYPE html>",
])
def test_invalid_html(body):
    assert not ContentParser().is_valid_html(body)


def test_extract_text_drops_scripts_styles_and_comments():
    body = """<!DOCTYPE html><html><head><title>Title</title>
    <style>.x { color: red; }</style><script>var x = 1;</script></head>
    <body><!-- hidden --><h1>Heading</h1><p>Some   body
    text</p><noscript>enable js</noscript></body></html>"""
    assert ContentParser().extract_text(body) == "Title Heading Some body text"


def test_extract_links_in_document_order_with_limit():
    body = "<!DOCTYPE html><body>" + "".join(
        f'<a href=" /page{i} ">p</a>' for i in range(10)
    ) + '<a name="anchor-without-href">x</a></body>'
    parser = ContentParser()
    assert parser.extract_links(body, 3) == ["/page0", "/page1", "/page2"]
    assert len(parser.extract_links(body, 100)) == 10
    assert parser.extract_links(body, 0) == []


def test_web_page_document_excludes_fingerprints():
    page = WebPage(url="https://a.example/", timestamp=1, status="200 OK", body="b",
                   fingerprints=frozenset({1}))
    assert page.to_dict() == {'url': "https://a.example/", 'timestamp': 1, 'status': "200 OK", 'body': "b"}


def test_web_pages_compare_by_identity():
    a = WebPage(url="https://a.example/", timestamp=1, status="200 OK", body="b")
    b = WebPage(url="https://a.example/", timestamp=1, status="200 OK", body="b")
    assert a != b
    assert len({a, b}) == 2
