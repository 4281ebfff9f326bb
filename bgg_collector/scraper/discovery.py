"""
Game identifier discovery from the paginated BGG catalog.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional, Set, Tuple

from ..error_handling import Cancelled, FetchError
from ..models import Failure
from .fetcher import DocumentFetcher

logger = logging.getLogger(__name__)

NON_DIGITS = re.compile(r'\D')


def clean_identifier(raw: Optional[str]) -> str:
    """Strip every non-digit character, e.g. "aad_174430" -> "174430"."""
    return NON_DIGITS.sub('', raw or '')


class IdentifierDiscovery:
    """
    Collects game identifiers from catalog pages.
    """

    def __init__(self, fetcher: DocumentFetcher, catalog_url: str, row_selector: str,
                 id_selector: str, id_attribute: str):
        """
        Initialize discovery.

        Args:
            fetcher: Fetcher for the catalog source (HTML parser)
            catalog_url: URL pattern with a ``{page}`` placeholder
            row_selector: CSS selector for one catalog row
            id_selector: CSS selector, relative to the row, of the element carrying
                the identifier; empty to read the row itself
            id_attribute: Attribute holding the identifier
        """
        self.fetcher = fetcher
        self.catalog_url = catalog_url
        self.row_selector = row_selector
        self.id_selector = id_selector
        self.id_attribute = id_attribute

    def page_url(self, page: int) -> str:
        return self.catalog_url.format(page=page)

    def discover_page(self, page: int, cancel_event: Optional[threading.Event] = None) -> List[str]:
        """
        Fetch one catalog page and return the identifiers listed on it.

        Raises:
            FetchError: The page could not be fetched or parsed
            Cancelled: The cancel event was set before the request went out
        """
        soup = self.fetcher.fetch(self.page_url(page), cancel_event)
        identifiers = []
        for row in soup.select(self.row_selector):
            element = row.select_one(self.id_selector) if self.id_selector else row
            if element is None:
                continue
            identifier = clean_identifier(element.get(self.id_attribute))
            if identifier:
                identifiers.append(identifier)
        logger.info(f"Found {len(identifiers)} game(s) on catalog page {page}")
        return identifiers

    def discover(self, pages: Iterable[int], max_workers: int = 8,
                 cancel_event: Optional[threading.Event] = None) -> Tuple[Set[str], List[Failure]]:
        """
        Scan catalog pages concurrently.

        A page that fails is recorded and the other pages carry on.

        Args:
            pages: 1-based page indices
            max_workers: Maximum pages fetched at the same time
            cancel_event: When set, pages not yet started are skipped

        Returns:
            Tuple of (deduplicated identifiers, failures)
        """
        identifiers: Set[str] = set()
        failures: List[Failure] = []
        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            futures = {ex.submit(self.discover_page, page, cancel_event): page for page in pages}
            for f in as_completed(futures):
                page = futures[f]
                try:
                    identifiers.update(f.result())
                except Cancelled:
                    continue
                except FetchError as e:
                    logger.error(f"Catalog page {page} failed: {e}")
                    failures.append(Failure(self.page_url(page), e))
                except Exception as e:
                    logger.exception(f"Unexpected error scanning catalog page {page}")
                    failures.append(Failure(self.page_url(page), e))
        logger.info(f"Discovered {len(identifiers)} unique game(s), {len(failures)} page failure(s)")
        return identifiers, failures
