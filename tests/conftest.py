"""
Fixtures and test configuration for the BGG collector test suite.
"""

import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
import requests

from bgg_collector.config import CollectorConfig
from bgg_collector.scraper import DocumentFetcher, RateLimiter, parse_html, parse_xml

CATALOG_URL = "https://catalog.test/browse/boardgame/page/{page}"
DETAIL_URL = "https://api.test/xmlapi/boardgame/{id}?stats=1"


class FakeResponse:
    """Minimal stand-in for requests.Response used as a context manager."""

    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self._content = content
        self.closed = False

    @property
    def content(self) -> bytes:
        return self._content

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeSession:
    """
    Serves canned responses keyed by URL and records every request.

    A route value may be bytes (200 response), a FakeResponse, or an exception
    instance to raise.
    """

    def __init__(self, routes: Optional[Dict[str, Union[bytes, FakeResponse, Exception]]] = None):
        self.routes = dict(routes or {})
        self.requests: List[str] = []
        self.responses: List[FakeResponse] = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            response = FakeResponse(404, b"not found")
        elif isinstance(route, Exception):
            raise route
        elif isinstance(route, FakeResponse):
            response = route
        else:
            response = FakeResponse(200, route)
        with self._lock:
            self.responses.append(response)
        return response

    def close(self):
        pass


def catalog_page(*identifiers: str) -> bytes:
    """HTML catalog page with one row per identifier, shaped like the BGG browse table."""
    rows = "".join(
        f'<tr id="row_"><td class="collection_rank">{n}</td>'
        f'<td class="collection_thumbnail"><div class="aad" id="aad_{identifier}"></div></td></tr>'
        for n, identifier in enumerate(identifiers, 1)
    )
    return f'<html><body><table class="collection_table">{rows}</table></body></html>'.encode()


def detail_document(objectid: Optional[str] = "174430", **fields: str) -> bytes:
    """Legacy xmlapi detail document containing only the given fields."""
    parts = []
    for tag in ("minplayers", "maxplayers", "minplaytime", "maxplaytime", "age"):
        if tag in fields:
            parts.append(f"<{tag}>{fields[tag]}</{tag}>")
    if "title" in fields:
        parts.append(f'<name sortindex="1">Alt Name</name><name primary="true" sortindex="1">{fields["title"]}</name>')
    ratings = ""
    if "rank" in fields:
        ratings += (f'<ranks><rank type="family" id="5497" name="strategygames" value="2"/>'
                    f'<rank type="subtype" id="1" name="boardgame" value="{fields["rank"]}"/></ranks>')
    if "averageweight" in fields:
        ratings += f'<averageweight>{fields["averageweight"]}</averageweight>'
    if ratings:
        parts.append(f"<statistics page=\"1\"><ratings>{ratings}</ratings></statistics>")
    attr = f' objectid="{objectid}"' if objectid is not None else ""
    return f'<?xml version="1.0"?><boardgames><boardgame{attr}>{"".join(parts)}</boardgame></boardgames>'.encode()


GLOOMHAVEN = dict(
    rank="3", minplayers="2", maxplayers="4", age="14", averageweight="3.86",
    minplaytime="90", title="Gloomhaven",
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def test_config(temp_dir):
    """Config with pacing disabled and local test URLs."""
    return CollectorConfig(
        pages=2,
        catalog_interval=0,
        detail_interval=0,
        concurrency=4,
        request_timeout=5,
        sink="console",
        database_path=temp_dir / "games.db",
        api="xmlapi",
        catalog_url=CATALOG_URL,
        detail_url=DETAIL_URL,
    )


@pytest.fixture
def html_fetcher():
    def make(session):
        return DocumentFetcher(session, RateLimiter(0), parse_html, timeout=5)
    return make


@pytest.fixture
def xml_fetcher():
    def make(session):
        return DocumentFetcher(session, RateLimiter(0), parse_xml, timeout=5)
    return make


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
