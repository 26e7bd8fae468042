"""
Configuration management for the crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, fields

from ..exceptions import ConfigError


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_urls: List[str] = field(default_factory=list)
    num_workers: int = 1
    page_directory: str = "pages"
    max_links_per_page: int = 20
    idle_delay: float = 1.0
    fetch_delay: float = 5.0
    request_timeout: int = 30
    max_content_bytes: int = 10 * 1024 * 1024
    user_agent: str = "SearchHouseSpider/1.0"
    host_filter: str = "wordpress"
    host_cache_size: int = 1000


@dataclass
class DedupConfig:
    """Configuration for near-duplicate detection."""
    shingle_size: int = 3
    fingerprint_capacity: int = 10000
    similarity_threshold: float = 0.9
    atomic_admission: bool = False


@dataclass
class RedisConfig:
    """Configuration for Redis."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    frontier_key: str = "searchhouse:frontier"


@dataclass
class FrontierConfig:
    """Configuration for the frontier store."""
    reset_on_start: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "searchHouse.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    frontier: FrontierConfig = field(default_factory=FrontierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


HOST_FILTERS = ('wordpress', 'any')


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {sorted(unknown)}")
    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            try:
                config_data = yaml.safe_load(file) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        self._config = self.from_dict(config_data)
        return self._config

    def from_dict(self, config_data: Dict[str, Any]) -> Config:
        """Build and validate a configuration from parsed YAML data."""
        if not isinstance(config_data, dict):
            raise ConfigError("Configuration root must be a mapping")

        unknown = set(config_data) - {f.name for f in fields(Config)}
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {sorted(unknown)}")

        self._config = Config(
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            dedup=_build_section(DedupConfig, config_data.get('dedup'), 'dedup'),
            redis=_build_section(RedisConfig, config_data.get('redis'), 'redis'),
            frontier=_build_section(FrontierConfig, config_data.get('frontier'), 'frontier'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging'),
            monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring')
        )

        self.validate()
        return self._config

    def validate(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigError("Configuration not loaded")

        crawler = self._config.crawler
        dedup = self._config.dedup

        if crawler.num_workers < 1:
            raise ConfigError("num_workers must be at least 1")

        if crawler.max_links_per_page < 0:
            raise ConfigError("max_links_per_page must be non-negative")

        if crawler.idle_delay < 0 or crawler.fetch_delay < 0:
            raise ConfigError("idle_delay and fetch_delay must be non-negative")

        if crawler.host_filter not in HOST_FILTERS:
            raise ConfigError(f"host_filter must be one of {HOST_FILTERS}")

        if crawler.host_cache_size < 1:
            raise ConfigError("host_cache_size must be at least 1")

        if not crawler.page_directory:
            raise ConfigError("page_directory must be set")

        if dedup.shingle_size < 1:
            raise ConfigError("shingle_size must be at least 1")

        if dedup.fingerprint_capacity < 1:
            raise ConfigError("fingerprint_capacity must be at least 1")

        if not 0.0 <= dedup.similarity_threshold <= 1.0:
            raise ConfigError("similarity_threshold must be between 0 and 1")

        logging.getLogger(__name__).debug("Configuration validation passed")

    def apply_overrides(self, **overrides) -> Config:
        """Override crawler settings with values given on the command line."""
        if not self._config:
            raise ConfigError("Configuration not loaded")
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self._config.crawler, key):
                raise ConfigError(f"Unknown crawler setting: {key}")
            setattr(self._config.crawler, key, value)
        self.validate()
        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._config
