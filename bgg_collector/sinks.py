"""
Destinations for a finished batch of game records.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

from .config import CollectorConfig
from .database import GameDatabase
from .error_handling import ConfigurationError
from .models import Game

logger = logging.getLogger(__name__)


class Sink(ABC):
    """Receives the record batch once, after all extraction has finished."""

    name = "sink"

    @abstractmethod
    def deliver(self, records: List[Game]) -> None:
        """Persist or display the records."""


class ConsoleSink(Sink):
    """Prints one line per game."""

    name = "console"

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def deliver(self, records: List[Game]) -> None:
        for game in records:
            print(game.describe(), file=self.stream)
        self.stream.flush()


class StoreSink(Sink):
    """Upserts games into the SQLite store, so re-runs overwrite rather than duplicate."""

    name = "store"

    def __init__(self, database: GameDatabase):
        self.database = database

    def deliver(self, records: List[Game]) -> None:
        self.database.upsert_games(records)


def build_sink(config: CollectorConfig) -> Sink:
    """Create the sink selected by ``config.sink``."""
    if config.sink == "console":
        return ConsoleSink()
    if config.sink == "store":
        return StoreSink(GameDatabase(config.database_path))
    raise ConfigurationError(f"unknown sink '{config.sink}'")
