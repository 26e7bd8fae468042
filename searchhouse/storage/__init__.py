"""
Storage layer: page persistence and near-duplicate detection.
"""

from .page_store import PageStore, FileStorageBackend
from .duplicate_detector import DuplicateDetector, DuplicateMatch
from .fingerprints import FingerprintIndex, generate_fingerprints, similarity

__all__ = [
    'PageStore', 'FileStorageBackend',
    'DuplicateDetector', 'DuplicateMatch',
    'FingerprintIndex', 'generate_fingerprints', 'similarity'
]
