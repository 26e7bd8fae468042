"""
Shingle fingerprints and the inverted fingerprint index.
"""

import re
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, Set, AbstractSet

from ..crawler.parser import WebPage
from ..utils.hashing import fnv1a_64

TOKEN_PATTERN = re.compile(r'\w+')


def tokenize(text: str):
    """Lower-cased word tokens of text."""
    return TOKEN_PATTERN.findall(text.lower())


def generate_fingerprints(text: str, k: int = 3, capacity: int = 10000) -> FrozenSet[int]:
    """
    Hash every overlapping k-token shingle of text.

    Generation stops as soon as capacity distinct fingerprints exist, so a
    long page keeps the fingerprints of its leading shingles. Text with fewer
    than k tokens yields one shingle made of all its tokens.
    """
    if k < 1:
        raise ValueError(f"Shingle size must be at least 1, got {k}")
    if capacity < 1:
        return frozenset()

    tokens = tokenize(text)
    if not tokens:
        return frozenset()
    if len(tokens) < k:
        return frozenset([fnv1a_64(' '.join(tokens))])

    fingerprints: Set[int] = set()
    for i in range(len(tokens) - k + 1):
        fingerprints.add(fnv1a_64(' '.join(tokens[i:i + k])))
        if len(fingerprints) >= capacity:
            break
    return frozenset(fingerprints)


def similarity(a: AbstractSet[int], b: AbstractSet[int]) -> float:
    """Jaccard index of two fingerprint sets; two empty sets score 0.0."""
    if not a and not b:
        return 0.0
    union = len(a | b)
    return len(a & b) / union


class FingerprintIndex:
    """
    Inverted index from fingerprint to the admitted pages containing it.

    Not synchronized; the duplicate detector serializes access. The index
    grows for the life of the process.
    """

    def __init__(self):
        self._pages_by_fingerprint: Dict[int, Set[WebPage]] = defaultdict(set)
        self._admission_order: Dict[WebPage, int] = {}

    def candidates(self, fingerprints: Iterable[int]) -> List[WebPage]:
        """Distinct admitted pages sharing at least one fingerprint, oldest first."""
        found: Set[WebPage] = set()
        for fingerprint in fingerprints:
            pages = self._pages_by_fingerprint.get(fingerprint)
            if pages:
                found.update(pages)
        return sorted(found, key=self._admission_order.__getitem__)

    def add(self, page: WebPage):
        if page in self._admission_order:
            return
        self._admission_order[page] = len(self._admission_order)
        for fingerprint in page.fingerprints:
            self._pages_by_fingerprint[fingerprint].add(page)

    def __contains__(self, fingerprint: int) -> bool:
        return fingerprint in self._pages_by_fingerprint

    def __len__(self) -> int:
        return len(self._pages_by_fingerprint)

    @property
    def page_count(self) -> int:
        return len(self._admission_order)
