"""
Brand Crawler Configuration
Config-first approach with typed configuration objects
"""
import os
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

@dataclass
class HttpConfig:
    """Feed transport configuration"""
    timeout_s: float = 15.0
    user_agent: str = "BrandCrawler/1.0"
    max_retries: int = 5
    min_delay_s: float = 0.0

@dataclass
class CrawlerConfig:
    """Scheduling and pagination configuration"""
    crawl_interval_s: float = 5.0
    max_extra_pages: int = 4
    page_limit: int = 100
    base_url: str = "https://graph.facebook.com"
    source_tag: str = "facebook"
    jsonl_out: Optional[str] = None
    http: HttpConfig = field(default_factory=HttpConfig)

@dataclass
class Config:
    """Main configuration object"""
    crawler: CrawlerConfig

    # Environment variables
    supabase_url: Optional[str] = field(init=False)
    supabase_key: Optional[str] = field(init=False)
    graph_access_token: Optional[str] = field(init=False)

    def __post_init__(self):
        """Load environment variables after initialization"""
        self.supabase_url = os.getenv('SUPABASE_URL')
        self.supabase_key = os.getenv('SUPABASE_KEY')
        self.graph_access_token = os.getenv('GRAPH_ACCESS_TOKEN')

# Global config instance
_config_instance: Optional[Config] = None

# Environment overrides: variable -> (field, caster)
ENV_OVERRIDES = {
    'CRAWL_INTERVAL_S': ('crawl_interval_s', float),
    'MAX_EXTRA_PAGES': ('max_extra_pages', int),
    'PAGE_LIMIT': ('page_limit', int),
    'FEED_BASE_URL': ('base_url', str),
}

def _build_crawler_config(section: Dict[str, Any]) -> CrawlerConfig:
    http_data = section.get('http', {})
    logging_data = section.get('logging', {})

    http_config = HttpConfig(
        timeout_s=float(http_data.get('timeout_s', 15.0)),
        user_agent=str(http_data.get('user_agent', "BrandCrawler/1.0")),
        max_retries=int(http_data.get('max_retries', 5)),
        min_delay_s=float(http_data.get('min_delay_s', 0.0))
    )

    return CrawlerConfig(
        crawl_interval_s=float(section.get('crawl_interval_s', 5.0)),
        max_extra_pages=int(section.get('max_extra_pages', 4)),
        page_limit=int(section.get('page_limit', 100)),
        base_url=str(section.get('base_url', "https://graph.facebook.com")).rstrip('/'),
        source_tag=str(section.get('source_tag', "facebook")),
        jsonl_out=logging_data.get('jsonl_out'),
        http=http_config
    )

def _apply_env_overrides(crawler: CrawlerConfig) -> None:
    for env_name, (attr, caster) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if not raw:
            continue
        try:
            setattr(crawler, attr, caster(raw))
            logger.debug(f"Config override from {env_name}: {attr}={raw}")
        except ValueError:
            raise ValueError(f"Invalid value for {env_name}: {raw!r}")

def load_config(config_path: str = "config.json") -> Config:
    """
    Load configuration from JSON file with typed objects

    A missing file is not an error: defaults apply, then environment overrides.

    Args:
        config_path: Path to config.json file

    Returns:
        Typed Config object
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    section: Dict[str, Any] = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
            section = config_data.get('feed_crawler', {})
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    try:
        crawler_config = _build_crawler_config(section)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid crawler configuration: {e}")

    _apply_env_overrides(crawler_config)

    if crawler_config.max_extra_pages < 0:
        raise ValueError("max_extra_pages must be >= 0")
    if crawler_config.page_limit <= 0:
        raise ValueError("page_limit must be > 0")

    _config_instance = Config(crawler=crawler_config)

    logger.info(f"Configuration loaded (interval={crawler_config.crawl_interval_s}s, "
                f"max_extra_pages={crawler_config.max_extra_pages}, page_limit={crawler_config.page_limit})")
    return _config_instance

def get_config() -> Config:
    """Get the global configuration instance"""
    if _config_instance is None:
        return load_config()
    return _config_instance

def reset_config() -> None:
    """Drop the cached instance so the next get_config() reloads"""
    global _config_instance
    _config_instance = None
