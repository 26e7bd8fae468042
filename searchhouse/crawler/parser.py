"""
Web page parser for extracting visible text and anchor links.
"""

import re
import logging
from typing import List, FrozenSet
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, Comment


@dataclass(frozen=True, eq=False)
class WebPage:
    """
    A fetched page admitted for persistence.

    Compared by identity: two pages with equal fields are still distinct
    entries in the fingerprint index.
    """
    url: str
    timestamp: int
    status: str
    body: str
    fingerprints: FrozenSet[int] = field(default_factory=frozenset, repr=False)

    def to_dict(self) -> dict:
        """Convert to the persisted JSON document."""
        return {
            'url': self.url,
            'timestamp': self.timestamp,
            'status': self.status,
            'body': self.body,
        }


class ContentParser:
    """
    Extracts the pieces of an HTML page the crawler needs: the text that is
    fingerprinted for near-duplicate detection and the outbound hrefs.
    """

    DOCTYPE_PREFIX = '<!doctype html'

    def __init__(self, parser_backend: str = 'lxml'):
        self.parser_backend = parser_backend
        self.logger = logging.getLogger(__name__)

        # Patterns for cleaning content
        self.whitespace_pattern = re.compile(r'\s+')

    def is_valid_html(self, body: str) -> bool:
        """Body must open with an HTML doctype once leading whitespace is stripped."""
        return body.lstrip()[:len(self.DOCTYPE_PREFIX)].lower() == self.DOCTYPE_PREFIX

    def extract_text(self, html_content: str) -> str:
        """Extract visible text with scripts, styles and comments removed."""
        try:
            soup = BeautifulSoup(html_content, self.parser_backend)

            for script in soup(["script", "style", "noscript"]):
                script.decompose()

            for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
                comment.extract()

            text = soup.get_text(separator=' ', strip=True)
            return self.whitespace_pattern.sub(' ', text).strip()

        except Exception as e:
            self.logger.error(f"Error extracting text: {e}")
            return ""

    def extract_links(self, html_content: str, max_links: int) -> List[str]:
        """
        Return raw href values of anchors in document order.
        At most max_links anchors are considered, bounding memory per page.
        """
        if max_links <= 0:
            return []
        try:
            soup = BeautifulSoup(html_content, self.parser_backend)
            hrefs = []
            for link in soup.find_all('a', href=True, limit=max_links):
                href = link['href'].strip()
                if href:
                    hrefs.append(href)
            return hrefs

        except Exception as e:
            self.logger.error(f"Error extracting links: {e}")
            return []
