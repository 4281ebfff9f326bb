"""
Scraping components for the BGG game collector.

This package handles:
- Per-source request pacing
- Document retrieval and parsing
- Game identifier discovery from catalog pages
- Game record extraction from detail documents
"""

from .rate_limiter import RateLimiter
from .fetcher import DocumentFetcher, build_session, parse_html, parse_xml
from .discovery import IdentifierDiscovery, clean_identifier
from .extractor import (
    RecordExtractor,
    ExtractionStrategy,
    LEGACY_XMLAPI,
    XMLAPI2,
    STRATEGIES,
    merge_min_max,
)

__all__ = [
    "RateLimiter",
    "DocumentFetcher",
    "build_session",
    "parse_html",
    "parse_xml",
    "IdentifierDiscovery",
    "clean_identifier",
    "RecordExtractor",
    "ExtractionStrategy",
    "LEGACY_XMLAPI",
    "XMLAPI2",
    "STRATEGIES",
    "merge_min_max",
]
