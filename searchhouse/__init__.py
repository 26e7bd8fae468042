"""
SearchHouse Spider

A politeness-aware web crawler with a sharded durable frontier and
near-duplicate detection, producing pages for a downstream search index.
"""

__version__ = "1.0.0"
__description__ = "Sharded web crawler with near-duplicate detection"
