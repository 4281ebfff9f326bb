"""
Rate-limited document retrieval for catalog pages and detail documents.
"""

import logging
import threading
import xml.etree.ElementTree as ET
from typing import Any, Callable, Optional

import requests
from bs4 import BeautifulSoup

from ..config import USER_AGENT, REQUEST_TIMEOUT
from ..error_handling import Cancelled, TransportError, ProtocolError, ParseError
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def build_session(user_agent: str = USER_AGENT) -> requests.Session:
    """Create an HTTP session shared by all fetchers of a run."""
    session = requests.Session()
    session.headers.update({'User-Agent': user_agent})
    return session


def parse_html(content: bytes) -> BeautifulSoup:
    return BeautifulSoup(content, 'html.parser')


def parse_xml(content: bytes) -> ET.Element:
    return ET.fromstring(content)


class DocumentFetcher:
    """
    Fetches a URL through a rate limiter and parses the body into a document.
    """

    def __init__(self, session: requests.Session, limiter: RateLimiter,
                 parser: Callable[[bytes], Any], timeout: float = REQUEST_TIMEOUT):
        """
        Initialize the fetcher.

        Args:
            session: HTTP session used for requests
            limiter: Pacing for the source this fetcher talks to
            parser: Turns the response body into a queryable document
            timeout: Request timeout in seconds
        """
        self.session = session
        self.limiter = limiter
        self.parser = parser
        self.timeout = timeout

    def fetch(self, url: str, cancel_event: Optional[threading.Event] = None) -> Any:
        """
        Fetch and parse one document.

        Args:
            url: Document URL
            cancel_event: When set before the rate limit permit is granted, no
                request is issued

        Returns:
            The parsed document

        Raises:
            TransportError: The request did not complete
            ProtocolError: The status code is not 200
            ParseError: The body could not be parsed
            Cancelled: The cancel event was set while waiting for a permit
        """
        if not self.limiter.acquire(cancel_event):
            raise Cancelled(f"request to {url} cancelled")
        logger.debug(f"GET {url}")
        try:
            with self.session.get(url, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise ProtocolError(url, response.status_code)
                content = response.content
        except requests.RequestException as e:
            raise TransportError(url, e) from e

        try:
            return self.parser(content)
        except Exception as e:
            raise ParseError(url, e) from e
