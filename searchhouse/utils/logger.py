"""
Logging for the spider: console output plus the append-only crawl log.

Workers log through a CrawlerLogAdapter so every line carries its shard,
both as a "[shard N]" prefix and as a field of the JSON output.
"""

import logging
import logging.handlers
import json
import os
import platform
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

import psutil

from .config import LoggingConfig

MAIN_LOG_MAX_BYTES = 50 * 1024 * 1024
ERROR_LOG_MAX_BYTES = 10 * 1024 * 1024

QUIET_LOGGERS = ('aiohttp', 'redis', 'asyncio', 'urllib3')


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with crawl context fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'time': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }

        context = getattr(record, 'crawl_context', None)
        if context:
            entry.update(context)

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class CrawlerLogAdapter(logging.LoggerAdapter):
    """Tags messages with fixed context such as the worker's shard."""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        extra = kwargs.setdefault('extra', {})
        context = dict(self.extra)
        context.update(extra.pop('crawl_context', {}))
        extra['crawl_context'] = context

        shard = self.extra.get('shard')
        if shard is not None:
            msg = f"[shard {shard}] {msg}"
        return msg, kwargs

    def log_url_event(self, level: int, url: str, message: str, **kwargs):
        """Log a line about one URL; JSON output gets the URL as a field."""
        kwargs.setdefault('extra', {})['crawl_context'] = {'url': url}
        self.log(level, message, **kwargs)


def _rotating_handler(path: Path, level: int, max_bytes: int, backups: int,
                      formatter: logging.Formatter) -> logging.Handler:
    # RotatingFileHandler opens in append mode, so restarts extend the log
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Configure the root logger from the logging section of the config.

    Installs three handlers: INFO and above to stdout, everything to the
    crawl log, and ERROR and above to a sibling ``<name>.errors.log``.
    Calling it again replaces the handlers.

    Args:
        config: Logging configuration

    Returns:
        The configured root logger
    """
    log_file = Path(config.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    error_log_file = log_file.with_name(f"{log_file.stem}.errors{log_file.suffix or '.log'}")

    formatter = JSONFormatter() if config.json else logging.Formatter(config.format)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)

    handlers: List[logging.Handler] = [
        console,
        _rotating_handler(log_file, logging.DEBUG, MAIN_LOG_MAX_BYTES, 5, formatter),
        _rotating_handler(error_log_file, logging.ERROR, ERROR_LOG_MAX_BYTES, 3, formatter),
    ]

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.level.upper()))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging to {log_file} (errors also to {error_log_file}) at level {config.level}")
    return root


def get_crawler_logger(name: str, **extra_context) -> CrawlerLogAdapter:
    """
    Logger that stamps extra_context on every message.

    Args:
        name: Logger name
        **extra_context: Fields added to every record, e.g. shard=3

    Returns:
        CrawlerLogAdapter wrapping logging.getLogger(name)
    """
    return CrawlerLogAdapter(logging.getLogger(name), extra_context)


def log_system_info(page_directory: Optional[str] = None):
    """Log the host the spider runs on and the space left for pages."""
    logger = logging.getLogger(__name__)

    memory = psutil.virtual_memory()
    logger.info(f"Host: {platform.node()} ({platform.platform()}), Python {platform.python_version()}")
    logger.info(f"CPUs: {psutil.cpu_count()}, memory: {memory.total / 1024**3:.1f} GB "
                f"({memory.percent:.0f}% used)")

    if page_directory:
        # The page directory may not exist yet; report the nearest existing parent
        probe = Path(page_directory).resolve()
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent
        disk = psutil.disk_usage(str(probe))
        logger.info(f"Free space for pages under {probe}: {disk.free / 1024**3:.1f} GB")

    logger.debug(f"Working directory: {os.getcwd()}")
