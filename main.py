#!/usr/bin/env python3
"""
Main entry point for the SearchHouse spider.
"""

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from searchhouse.exceptions import CrawlerError
from searchhouse.utils.config import ConfigManager, Config
from searchhouse.utils.logger import setup_logging, log_system_info
from searchhouse.crawler.scheduler import CrawlerScheduler


class CrawlerApp:
    """Main application class for the crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self):
        """Stop the crawl gracefully on SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()

        def signal_handler(signame):
            self.logger.info(f"Received {signame}, initiating shutdown...")
            if self.scheduler:
                self.scheduler.stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, signal_handler, sig.name)
            except NotImplementedError:
                # Not available on Windows event loops
                signal.signal(sig, lambda signum, frame: signal_handler(signal.Signals(signum).name))

    async def run(self, config: Config) -> int:
        """Run the crawler until it is stopped or a storage error occurs."""
        self.scheduler = CrawlerScheduler(config)
        self.setup_signal_handlers()

        self.logger.info("=== SEARCHHOUSE SPIDER STARTING ===")
        self.logger.info(f"Seed URLs: {config.crawler.seed_urls}")
        self.logger.info(f"Workers (shards): {config.crawler.num_workers}")
        self.logger.info(f"Page directory: {config.crawler.page_directory}")
        self.logger.info(f"Max links per page: {config.crawler.max_links_per_page}")
        self.logger.info(f"Host filter: {config.crawler.host_filter}")

        try:
            await self.scheduler.initialize()
            if config.monitoring.metrics_enabled:
                self.scheduler.monitor.start_server(config.monitoring.prometheus_port)
            await self.scheduler.start_crawling()

        except CrawlerError as e:
            self.logger.critical(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            await self.scheduler.close()
            self.logger.info("=== SEARCHHOUSE SPIDER FINISHED ===")

        return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SearchHouse spider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --spider --seed https://example.com
  python main.py --spider --workers 4 --page-dir pages --seed https://a.example --seed https://b.example
  python main.py --spider --workers 8 --reset-frontier   # required when the worker count changes
        """
    )

    parser.add_argument('--spider', action='store_true', help='Run the spider')
    parser.add_argument('--config', default='config.yaml',
                        help='Path to configuration file (default: config.yaml)')
    parser.add_argument('--workers', type=int, dest='num_workers',
                        help='Number of workers, one per frontier shard')
    parser.add_argument('--page-dir', dest='page_directory',
                        help='Directory where pages are saved')
    parser.add_argument('--seed', action='append', dest='seed_urls', metavar='URL',
                        help='Seed URL to start crawling from (repeatable)')
    parser.add_argument('--max-links', type=int, dest='max_links_per_page',
                        help='Maximum number of links read from a page (memory usage)')
    parser.add_argument('--reset-frontier', action='store_true',
                        help='Discard the queued frontier before starting')
    parser.add_argument('--version', action='version', version='SearchHouse spider 1.0.0')
    return parser


def load_settings(args: argparse.Namespace) -> Config:
    """Load the config file if present and apply command-line overrides."""
    manager = ConfigManager(args.config)
    if Path(args.config).exists():
        manager.load_config()
    else:
        manager.from_dict({})

    config = manager.apply_overrides(
        num_workers=args.num_workers,
        page_directory=args.page_directory,
        seed_urls=args.seed_urls,
        max_links_per_page=args.max_links_per_page
    )
    if args.reset_frontier:
        config.frontier.reset_on_start = True
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_settings(args)
    except CrawlerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)
    log_system_info(config.crawler.page_directory)

    if not args.spider:
        logging.getLogger(__name__).info("Nothing to do; pass --spider to crawl")
        return 0

    return asyncio.run(CrawlerApp().run(config))


if __name__ == '__main__':
    sys.exit(main())
