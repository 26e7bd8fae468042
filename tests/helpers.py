"""Test doubles and page builders."""

from typing import Dict, List, Optional

from searchhouse.crawler.fetcher import FetchResult


def html_page(text: str, links: Optional[List[str]] = None) -> str:
    anchors = ''.join(f'<a href="{href}">link</a>' for href in links or [])
    return f"<!DOCTYPE html><html><head><title>t</title></head><body><p>{text}</p>{anchors}</body></html>"


class StubFetcher:
    """Serves canned FetchResults and records requested URLs."""

    def __init__(self, responses: Optional[Dict[str, FetchResult]] = None):
        self.responses = responses or {}
        self.requested: List[str] = []

    def add_page(self, url: str, body: str, status_code: int = 200):
        reason = {200: 'OK', 403: 'Forbidden', 404: 'Not Found', 500: 'Internal Server Error'}.get(status_code, '')
        self.responses[url] = FetchResult(
            url=url,
            status_code=status_code,
            status=f"{status_code} {reason}".strip(),
            content=body if status_code == 200 else None
        )

    async def start(self):
        pass

    async def close(self):
        pass

    async def fetch(self, url: str) -> FetchResult:
        self.requested.append(url)
        if url in self.responses:
            return self.responses[url]
        return FetchResult(url=url, status_code=0, error="Client error: connection refused")

    def get_stats(self):
        return {'requests': len(self.requested)}


