"""
Page storage for admitted pages.
Each page is written once as a JSON document named after the FNV-1a hash of its URL.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any

from ..crawler.parser import WebPage
from ..exceptions import PageStoreError
from ..utils.hashing import fnv1a_64


class StorageBackend:
    """Abstract base class for page storage backends."""

    def initialize(self):
        """Initialize the storage backend."""
        raise NotImplementedError

    def page_exists(self, url: str) -> bool:
        """Check whether a page has been stored for URL."""
        raise NotImplementedError

    def store_page(self, page: WebPage) -> bool:
        """Store a page; returns False when it was already stored."""
        raise NotImplementedError

    def get_page(self, url: str) -> Optional[Dict[str, Any]]:
        """Retrieve the stored document for URL."""
        raise NotImplementedError


class FileStorageBackend(StorageBackend):
    """One JSON file per page in a flat page directory."""

    def __init__(self, page_directory: str):
        self.page_directory = Path(page_directory)
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'total_stored': 0,
            'skipped_existing': 0,
            'total_size_bytes': 0
        }

    def initialize(self):
        """Create the page directory."""
        try:
            self.page_directory.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"File storage initialized at {self.page_directory.resolve()}")
        except OSError as e:
            raise PageStoreError(f"Failed to initialize page directory {self.page_directory}: {e}") from e

    def page_path(self, url: str) -> Path:
        """Generate file path for URL."""
        return self.page_directory / f"{fnv1a_64(url)}.json"

    def page_exists(self, url: str) -> bool:
        path = self.page_path(url)
        try:
            path.stat()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PageStoreError(f"Cannot stat {path}: {e}") from e

    def store_page(self, page: WebPage) -> bool:
        file_path = self.page_path(page.url)
        try:
            # 'x' keeps files write-once when a URL was queued twice
            with open(file_path, 'x', encoding='utf-8') as f:
                json.dump(page.to_dict(), f, ensure_ascii=False)
        except FileExistsError:
            self.stats['skipped_existing'] += 1
            self.logger.debug(f"Page already stored, not overwriting: {page.url}")
            return False
        except OSError as e:
            raise PageStoreError(f"Cannot write {file_path}: {e}") from e

        self.stats['total_stored'] += 1
        self.stats['total_size_bytes'] += file_path.stat().st_size
        self.logger.debug(f"Stored {page.url} to {file_path}")
        return True

    def get_page(self, url: str) -> Optional[Dict[str, Any]]:
        file_path = self.page_path(url)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise PageStoreError(f"Cannot read {file_path}: {e}") from e


class PageStore:
    """
    Gateway shared by all workers.

    A single lock serializes every filesystem access across workers. Storage
    failures raise PageStoreError and are meant to stop the crawl.
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.logger = logging.getLogger(__name__)
        self._lock = asyncio.Lock()

    @classmethod
    def from_directory(cls, page_directory: str) -> 'PageStore':
        return cls(FileStorageBackend(page_directory))

    def initialize(self):
        self.backend.initialize()

    async def page_exists(self, url: str) -> bool:
        """Check if a page for URL has already been fetched and stored."""
        async with self._lock:
            return self.backend.page_exists(url)

    async def store_page(self, page: WebPage) -> bool:
        async with self._lock:
            return self.backend.store_page(page)

    async def get_page(self, url: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            return self.backend.get_page(url)

    def get_stats(self) -> Dict[str, Any]:
        return dict(getattr(self.backend, 'stats', {}))
