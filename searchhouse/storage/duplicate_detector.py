"""
Near-duplicate content detection using shingle fingerprints.
"""

import asyncio
import logging
from typing import Optional, Dict
from dataclasses import dataclass

from ..crawler.parser import WebPage
from .fingerprints import FingerprintIndex, similarity


@dataclass
class DuplicateMatch:
    """An already-admitted page that a candidate page nearly duplicates."""
    original: WebPage
    similarity: float


class DuplicateDetector:
    """
    Decides whether a fetched page nearly duplicates an admitted one.

    Candidate pages come from the inverted fingerprint index, so each check
    costs in proportion to the pages sharing fingerprints with the candidate
    rather than to the size of the crawl. The first page admitted stays the
    original; later near-duplicates are rejected.

    check_duplicate() and add_content() take the index lock separately, so two
    workers can both pass the check for mutually duplicate pages and both be
    admitted. Use check_and_admit() when admission must be exactly-once.
    """

    def __init__(self, similarity_threshold: float = 0.9,
                 index: Optional[FingerprintIndex] = None):
        self.similarity_threshold = similarity_threshold
        self.index = index if index is not None else FingerprintIndex()
        self.logger = logging.getLogger(__name__)
        self._lock = asyncio.Lock()

        # Statistics
        self.stats = {
            'total_checks': 0,
            'near_duplicates': 0,
            'pages_admitted': 0,
            'candidates_compared': 0
        }

    def _find_match(self, page: WebPage) -> Optional[DuplicateMatch]:
        self.stats['total_checks'] += 1
        for candidate in self.index.candidates(page.fingerprints):
            if candidate.url == page.url:
                continue
            self.stats['candidates_compared'] += 1
            score = similarity(page.fingerprints, candidate.fingerprints)
            if score > self.similarity_threshold:
                self.stats['near_duplicates'] += 1
                self.logger.info(f"{candidate.url} has a {score:.6f} match to {page.url}")
                return DuplicateMatch(original=candidate, similarity=score)
        return None

    def _admit(self, page: WebPage):
        self.index.add(page)
        self.stats['pages_admitted'] += 1
        self.logger.debug(f"Admitted {len(page.fingerprints)} fingerprints for {page.url}")

    async def check_duplicate(self, page: WebPage) -> Optional[DuplicateMatch]:
        """Return the admitted page this page nearly duplicates, if any."""
        async with self._lock:
            return self._find_match(page)

    async def add_content(self, page: WebPage):
        """Register every fingerprint of an admitted page."""
        async with self._lock:
            self._admit(page)

    async def check_and_admit(self, page: WebPage) -> Optional[DuplicateMatch]:
        """
        Check and admit under one lock acquisition.
        Returns the match when the page is a duplicate; otherwise the page is
        admitted and None is returned.
        """
        async with self._lock:
            match = self._find_match(page)
            if match is None:
                self._admit(page)
            return match

    def get_stats(self) -> Dict[str, int]:
        """Get duplicate detection statistics."""
        return {
            **self.stats,
            'indexed_fingerprints': len(self.index),
            'indexed_pages': self.index.page_count
        }
