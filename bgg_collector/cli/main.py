"""
Main CLI entry point for the BGG game collector.
"""

import argparse
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import datetime
from typing import List, Optional

from ..config import API, DETAIL_URLS, SINKS, CollectorConfig
from ..database import GameDatabase
from ..error_handling import ConfigurationError, PipelineAborted
from ..logging_config import setup_logging
from ..models import PipelineResult
from ..pipeline import run_collection
from ..sinks import Sink, build_sink

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collect BoardGameGeek game records")
    parser.add_argument("--pages", type=int, default=None, help="Number of catalog pages to scan")
    parser.add_argument("--concurrency", type=int, default=None, help="Max concurrent requests per phase")
    parser.add_argument("--interval", type=float, default=None,
                        help="Seconds between requests to each source (sets both intervals)")
    parser.add_argument("--catalog-interval", type=float, default=None, help="Seconds between catalog requests")
    parser.add_argument("--detail-interval", type=float, default=None, help="Seconds between detail requests")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--sink", choices=SINKS, default=None, help="Where records go (default: console)")
    parser.add_argument("--db", default=None, help="Database file path for the store sink")
    parser.add_argument("--api", choices=sorted(DETAIL_URLS), default=None,
                        help=f"Detail API flavour (default: {API})")
    parser.add_argument("--stats", action="store_true", help="Print store statistics and exit")
    parser.add_argument("--log-file", type=str, default=None, help="Custom log file name or absolute path")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def config_from_args(args: argparse.Namespace) -> CollectorConfig:
    catalog_interval = args.catalog_interval if args.catalog_interval is not None else args.interval
    detail_interval = args.detail_interval if args.detail_interval is not None else args.interval
    return CollectorConfig.from_env(
        pages=args.pages,
        concurrency=args.concurrency,
        catalog_interval=catalog_interval,
        detail_interval=detail_interval,
        request_timeout=args.timeout,
        sink=args.sink,
        database_path=args.db,
        api=args.api,
    )


def run_until_interrupted(config: CollectorConfig, sink: Sink,
                          cancel_event: Optional[threading.Event] = None) -> PipelineResult:
    """
    Run the collection off the main thread so Ctrl-C can cancel it cleanly.

    On KeyboardInterrupt the cancel event is set, in-flight requests drain and
    the interrupt is re-raised once the run has stopped.
    """
    cancel_event = cancel_event or threading.Event()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="collector") as runner:
        future = runner.submit(run_collection, config, sink, cancel_event)
        try:
            while True:
                try:
                    return future.result(timeout=0.5)
                except FutureTimeout:
                    continue
        except KeyboardInterrupt:
            print("\nInterrupted, waiting for in-flight requests to finish...", file=sys.stderr)
            cancel_event.set()
            try:
                future.result()
            except PipelineAborted as e:
                logger.info(f"Collection stopped: {e.reason}")
            raise


def print_summary(result: PipelineResult) -> None:
    print("\n" + "="*60, file=sys.stderr)
    print("COLLECTION RESULTS", file=sys.stderr)
    print("="*60, file=sys.stderr)
    print(f"Catalog pages scanned: {result.pages_scanned}", file=sys.stderr)
    print(f"Unique games discovered: {result.identifiers_discovered}", file=sys.stderr)
    print(f"Games delivered: {len(result.records)}", file=sys.stderr)
    print(f"Failures: {len(result.failures)}", file=sys.stderr)
    for kind, count in sorted(result.failure_counts().items()):
        print(f"  - {kind}: {count}", file=sys.stderr)
    print("="*60, file=sys.stderr)


def print_statistics(database: GameDatabase) -> None:
    stats = database.get_statistics()
    print("="*60)
    print("STORE STATISTICS")
    print("="*60)
    print(f"Database: {database.db_path}")
    print(f"Total games in database: {stats.get('total_games_in_db', 0)}")
    print(f"Ranked games: {stats.get('ranked_games_in_db', 0)}")
    print("="*60)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    # Build a default per-run log filename when not provided
    if args.log_file:
        log_file = args.log_file
    else:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        pages = args.pages if args.pages is not None else "default"
        log_file = f"run_{ts}_pages{pages}.log"
    setup_logging(log_file, getattr(logging, args.log_level))

    try:
        config = config_from_args(args)
        if args.stats:
            print_statistics(GameDatabase(config.database_path))
            return EXIT_OK
        sink = build_sink(config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILED

    logger.info(f"Starting collection: {config.pages} page(s), concurrency {config.concurrency}, "
                f"sink '{config.sink}', api '{config.api}'")
    try:
        result = run_until_interrupted(config, sink)
    except KeyboardInterrupt:
        print("\nProcess interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED
    except PipelineAborted as e:
        if e.result is not None:
            print_summary(e.result)
        print(f"Collection aborted: {e.reason}", file=sys.stderr)
        return EXIT_FAILED

    print_summary(result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
