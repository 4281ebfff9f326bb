"""
Configuration settings for the BGG game collector.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from .error_handling import ConfigurationError

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent  # Go up one level to workspace root
DATABASE_PATH = PROJECT_ROOT / "bgg_games.db"
# Logs directory for per-run logs
LOGS_DIR = PROJECT_ROOT / "bgg_collector_cache" / "logs"

# Remote sources
CATALOG_URL = "https://boardgamegeek.com/browse/boardgame/page/{page}"
DETAIL_URLS = {
    "xmlapi": "https://api.geekdo.com/xmlapi/boardgame/{id}?stats=1",
    "xmlapi2": "https://boardgamegeek.com/xmlapi2/thing?id={id}&stats=1",
}
USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'

# Catalog markup: one row per ranked game, the identifier sits in an element id
CATALOG_ROW_SELECTOR = "#row_"
CATALOG_ID_SELECTOR = ".aad"
CATALOG_ID_ATTRIBUTE = "id"

# Run settings
PAGES = 10
CATALOG_INTERVAL = 1.0  # seconds between catalog requests
DETAIL_INTERVAL = 1.0  # seconds between detail requests
CONCURRENCY = 8
MAX_CONCURRENCY = 64
REQUEST_TIMEOUT = 30.0

# Sink: "console" (default) or "store"
SINK = "console"
SINKS = ("console", "store")

# Detail API flavour: "xmlapi" (legacy, default) or "xmlapi2"
API = "xmlapi"

# Config field -> (environment variable, converter)
ENV_VARS = {
    "pages": ("BGG_PAGES", int),
    "catalog_interval": ("BGG_CATALOG_INTERVAL", float),
    "detail_interval": ("BGG_DETAIL_INTERVAL", float),
    "concurrency": ("BGG_CONCURRENCY", int),
    "request_timeout": ("BGG_REQUEST_TIMEOUT", float),
    "sink": ("BGG_SINK", str.lower),
    "database_path": ("BGG_DATABASE_PATH", Path),
    "api": ("BGG_API", str.lower),
}


def read_environment(environ: Optional[Mapping[str, str]] = None) -> dict:
    """
    Read config fields from ``BGG_*`` environment variables.

    Raises:
        ConfigurationError: A variable is set but cannot be converted
    """
    environ = os.environ if environ is None else environ
    values = {}
    for field, (name, convert) in ENV_VARS.items():
        raw = environ.get(name)
        if raw is None or not raw.strip():
            continue
        try:
            values[field] = convert(raw.strip())
        except ValueError:
            raise ConfigurationError(f"{name} has an invalid value {raw!r}") from None
    return values


@dataclass(frozen=True)
class CollectorConfig:
    """Settings for one collector run, passed into each component."""
    pages: int = PAGES
    catalog_interval: float = CATALOG_INTERVAL
    detail_interval: float = DETAIL_INTERVAL
    concurrency: int = CONCURRENCY
    request_timeout: float = REQUEST_TIMEOUT
    sink: str = SINK
    database_path: Path = DATABASE_PATH
    api: str = API
    catalog_url: str = CATALOG_URL
    detail_url: str = ""
    catalog_row_selector: str = CATALOG_ROW_SELECTOR
    catalog_id_selector: str = CATALOG_ID_SELECTOR
    catalog_id_attribute: str = CATALOG_ID_ATTRIBUTE
    user_agent: str = USER_AGENT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "CollectorConfig":
        """
        Build a config from the built-in defaults, the environment and explicit overrides.

        Args:
            environ: Variables to read instead of ``os.environ``
            **overrides: Fields to set explicitly; ``None`` values are ignored

        Returns:
            A validated config

        Raises:
            ConfigurationError: An environment value is malformed or a setting is out of range
        """
        values = read_environment(environ)
        values.update({k: v for k, v in overrides.items() if v is not None})
        config = replace(cls(), **values)
        config.validate()
        return config

    @property
    def detail_url_pattern(self) -> str:
        """Detail URL pattern, defaulting to the one matching ``api``."""
        return self.detail_url or DETAIL_URLS[self.api]

    def validate(self) -> None:
        """Raise ConfigurationError if any setting is out of range."""
        if self.pages < 1:
            raise ConfigurationError(f"pages must be at least 1, got {self.pages}")
        if not 1 <= self.concurrency <= MAX_CONCURRENCY:
            raise ConfigurationError(
                f"concurrency must be between 1 and {MAX_CONCURRENCY}, got {self.concurrency}"
            )
        if self.catalog_interval < 0 or self.detail_interval < 0:
            raise ConfigurationError("request intervals must not be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.sink not in SINKS:
            raise ConfigurationError(f"unknown sink '{self.sink}', expected one of {', '.join(SINKS)}")
        if self.api not in DETAIL_URLS:
            raise ConfigurationError(f"unknown api '{self.api}', expected one of {', '.join(DETAIL_URLS)}")
        if "{page}" not in self.catalog_url:
            raise ConfigurationError("catalog_url must contain a {page} placeholder")
        if "{id}" not in self.detail_url_pattern:
            raise ConfigurationError("detail_url must contain an {id} placeholder")
        if not self.catalog_row_selector or not self.catalog_id_attribute:
            raise ConfigurationError("catalog row selector and id attribute are required")
