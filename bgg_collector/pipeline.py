"""
Collector pipeline: discover identifiers, extract records, deliver the batch.

The three phases run strictly in order. Each fan-out phase uses a bounded
thread pool and the orchestrating thread is the only writer of the results.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional, Tuple

import requests

from .config import CollectorConfig
from .error_handling import (
    Cancelled,
    ConfigurationError,
    ExtractError,
    FetchError,
    PipelineAborted,
)
from .models import Failure, Game, PipelineResult, PipelineState
from .scraper import (
    DocumentFetcher,
    IdentifierDiscovery,
    RateLimiter,
    RecordExtractor,
    STRATEGIES,
    build_session,
    parse_html,
    parse_xml,
)
from .sinks import Sink

logger = logging.getLogger(__name__)


def build_discovery(config: CollectorConfig, session: requests.Session) -> IdentifierDiscovery:
    """Discovery wired to its own catalog rate limiter."""
    fetcher = DocumentFetcher(session, RateLimiter(config.catalog_interval), parse_html,
                              timeout=config.request_timeout)
    return IdentifierDiscovery(
        fetcher,
        config.catalog_url,
        config.catalog_row_selector,
        config.catalog_id_selector,
        config.catalog_id_attribute,
    )


def build_extractor(config: CollectorConfig, session: requests.Session) -> RecordExtractor:
    """Extractor wired to its own detail rate limiter."""
    fetcher = DocumentFetcher(session, RateLimiter(config.detail_interval), parse_xml,
                              timeout=config.request_timeout)
    return RecordExtractor(fetcher, config.detail_url_pattern, STRATEGIES[config.api])


class Pipeline:
    """
    Runs one collection: catalog pages -> unique identifiers -> games -> sink.
    """

    def __init__(self, config: CollectorConfig, sink: Sink,
                 session: Optional[requests.Session] = None,
                 discovery: Optional[IdentifierDiscovery] = None,
                 extractor: Optional[RecordExtractor] = None):
        """
        Initialize the pipeline.

        Args:
            config: Run configuration
            sink: Destination for the final batch
            session: HTTP session; one is built from the config when omitted
            discovery: Pre-built discovery component
            extractor: Pre-built extraction component
        """
        config.validate()
        self.config = config
        self.sink = sink
        self.session = session or build_session(config.user_agent)
        self.discovery = discovery or build_discovery(config, self.session)
        self.extractor = extractor or build_extractor(config, self.session)
        self.state = PipelineState.IDLE

    def run(self, cancel_event: Optional[threading.Event] = None) -> PipelineResult:
        """
        Run all phases.

        Args:
            cancel_event: When set, no new request is started and the run aborts
                before delivery

        Returns:
            The completed result; individual page or game failures are listed in it

        Raises:
            PipelineAborted: Nothing was discovered, the run was cancelled or the
                sink failed
        """
        if self.state is not PipelineState.IDLE:
            raise ConfigurationError(f"pipeline already ran (state: {self.state.value})")
        result = PipelineResult(pages_scanned=self.config.pages)

        self.state = PipelineState.DISCOVERING
        pages = range(1, self.config.pages + 1)
        logger.info(f"Scanning {self.config.pages} catalog page(s)")
        identifiers, failures = self.discovery.discover(pages, self.config.concurrency, cancel_event)
        result.failures.extend(failures)
        result.identifiers_discovered = len(identifiers)
        self._check_cancelled(cancel_event, result)
        if not identifiers:
            reason = "no game identifiers discovered"
            if failures:
                reason += f" ({len(failures)} of {self.config.pages} page(s) failed: {failures[0].error})"
            self._abort(reason, result)

        self.state = PipelineState.EXTRACTING
        records, failures = self.extract_all(sorted(identifiers, key=int), cancel_event)
        result.records.extend(records)
        result.failures.extend(failures)
        self._check_cancelled(cancel_event, result)

        self.state = PipelineState.DELIVERING
        result.records.sort(key=lambda game: game.id)
        try:
            self.sink.deliver(result.records)
        except Exception as e:
            logger.exception(f"Sink '{self.sink.name}' failed")
            self._abort(f"{self.sink.name} sink failed: {e}", result)

        self.state = PipelineState.COMPLETED
        logger.info(result.summary())
        return result

    def extract_all(self, identifiers: Iterable[str],
                    cancel_event: Optional[threading.Event] = None) -> Tuple[List[Game], List[Failure]]:
        """
        Extract games concurrently, at most ``config.concurrency`` at a time.

        Returns:
            Tuple of (records, failures)
        """
        records: List[Game] = []
        failures: List[Failure] = []
        with ThreadPoolExecutor(max_workers=self.config.concurrency) as ex:
            futures = {ex.submit(self.extractor.extract, i, cancel_event): i for i in identifiers}
            logger.info(f"Extracting {len(futures)} game(s) with {self.config.concurrency} worker(s)")
            for f in as_completed(futures):
                identifier = futures[f]
                try:
                    records.append(f.result())
                except Cancelled:
                    continue
                except (FetchError, ExtractError) as e:
                    logger.error(f"Game {identifier} failed: {e}")
                    failures.append(Failure(identifier, e))
                except Exception as e:
                    logger.exception(f"Unexpected error extracting game {identifier}")
                    failures.append(Failure(identifier, e))
        logger.info(f"Extracted {len(records)} game(s), {len(failures)} failure(s)")
        return records, failures

    def _check_cancelled(self, cancel_event: Optional[threading.Event], result: PipelineResult) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self._abort("cancelled", result)

    def _abort(self, reason: str, result: PipelineResult) -> None:
        self.state = PipelineState.ABORTED
        logger.error(f"Pipeline aborted: {reason}")
        raise PipelineAborted(reason, result)


def run_collection(config: CollectorConfig, sink: Sink,
                   cancel_event: Optional[threading.Event] = None) -> PipelineResult:
    """Build a pipeline for ``config`` and run it, closing the HTTP session afterwards."""
    session = build_session(config.user_agent)
    try:
        return Pipeline(config, sink, session=session).run(cancel_event)
    finally:
        session.close()
