"""
Monitoring and metrics collection for the crawler.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


class CrawlerMonitor:
    """Prometheus metrics for the crawl, held in a private registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.urls_fetched = Counter(
            'crawler_urls_fetched_total',
            'HTTP fetches attempted, by status code',
            ['status_code'],
            registry=self.registry
        )
        self.pages_stored = Counter(
            'crawler_pages_stored_total',
            'Pages admitted and written to the page directory',
            registry=self.registry
        )
        self.duplicates_skipped = Counter(
            'crawler_duplicates_skipped_total',
            'Pages rejected as near-duplicates',
            registry=self.registry
        )
        self.urls_rejected = Counter(
            'crawler_urls_rejected_total',
            'URLs discarded before fetching, by reason',
            ['reason'],
            registry=self.registry
        )
        self.errors = Counter(
            'crawler_errors_total',
            'Recoverable crawl errors, by type',
            ['error_type'],
            registry=self.registry
        )
        self.urls_queued = Counter(
            'crawler_urls_queued_total',
            'URLs inserted into the frontier',
            registry=self.registry
        )
        self.response_time = Histogram(
            'crawler_response_time_seconds',
            'Response time for HTTP requests',
            registry=self.registry
        )
        self.queue_size = Gauge(
            'crawler_queue_size',
            'Number of URLs pending in a frontier shard',
            ['shard'],
            registry=self.registry
        )
        self.active_workers = Gauge(
            'crawler_active_workers',
            'Number of running shard workers',
            registry=self.registry
        )

    def start_server(self, port: int):
        """Start the Prometheus metrics HTTP server."""
        start_http_server(port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {port}")

    def record_fetch(self, status_code: int, response_time: float):
        self.urls_fetched.labels(status_code=str(status_code)).inc()
        self.response_time.observe(response_time)

    def record_page_stored(self):
        self.pages_stored.inc()

    def record_duplicate_skipped(self):
        self.duplicates_skipped.inc()

    def record_rejected(self, reason: str):
        self.urls_rejected.labels(reason=reason).inc()

    def record_error(self, error_type: str):
        self.errors.labels(error_type=error_type).inc()

    def record_queued(self, count: int = 1):
        self.urls_queued.inc(count)

    def update_queue_size(self, shard: int, size: int):
        self.queue_size.labels(shard=str(shard)).set(size)

    def get_value(self, name: str, **labels) -> float:
        """Current value of a sample, 0.0 if it has not been recorded."""
        value = self.registry.get_sample_value(name, labels or None)
        return value if value is not None else 0.0
