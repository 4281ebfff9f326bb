"""
BGG Collector - BoardGameGeek game record collection.

This package scans the BoardGameGeek catalog for game identifiers, fetches
each game's detail document under per-source rate limits, normalizes the
fields into typed records and delivers them to the console or a SQLite store.
"""

__version__ = "0.1.0"
__author__ = "BGG Data Team"

# Main package imports for convenience
from .config import CollectorConfig
from .database import GameDatabase
from .models import Game, Failure, PipelineResult, PipelineState
from .pipeline import Pipeline, run_collection
from .sinks import Sink, ConsoleSink, StoreSink, build_sink
from .logging_config import setup_logging

__all__ = [
    "CollectorConfig",
    "GameDatabase",
    "Game",
    "Failure",
    "PipelineResult",
    "PipelineState",
    "Pipeline",
    "run_collection",
    "Sink",
    "ConsoleSink",
    "StoreSink",
    "build_sink",
    "setup_logging",
]
