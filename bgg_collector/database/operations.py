"""
Database operations for BGG game data.

This module provides the store behind the ``store`` sink: idempotent upserts
keyed by game id, plus read-back queries used by the CLI.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

from ..error_handling import SinkError
from ..models import Game
from .models import create_database

logger = logging.getLogger(__name__)

UPSERT_SQL = """
    INSERT INTO games (id, title, rank, players, duration, age, weight, last_updated)
    VALUES (?, ?, ?, ?, ?, ?, ?, datetime('now'))
    ON CONFLICT(id) DO UPDATE SET
        title = excluded.title,
        rank = excluded.rank,
        players = excluded.players,
        duration = excluded.duration,
        age = excluded.age,
        weight = excluded.weight,
        last_updated = excluded.last_updated
"""


class GameDatabase:
    """
    High-level database operations for BGG game data.
    """

    def __init__(self, db_path: Path):
        """
        Initialize the game database handler.

        Args:
            db_path: Path to the SQLite database
        """
        self.db_path = Path(db_path)

        # Create database if it doesn't exist
        if not self.db_path.exists():
            logger.info(f"Database not found at {self.db_path}, creating it...")
        create_database(self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def upsert_games(self, games: Iterable[Game]) -> int:
        """
        Insert or overwrite games keyed by id in a single transaction.

        Args:
            games: Records to store

        Returns:
            Number of records written

        Raises:
            SinkError: The transaction failed and was rolled back
        """
        rows = [game.as_row() for game in games]
        conn = self._connect()
        try:
            conn.executemany(UPSERT_SQL, rows)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise SinkError(f"Error saving games to {self.db_path}: {e}") from e
        finally:
            conn.close()
        logger.info(f"Saved {len(rows)} game(s) to {self.db_path}")
        return len(rows)

    def get_games(self, limit: Optional[int] = None, rank_from: Optional[int] = None,
                  rank_to: Optional[int] = None) -> List[Game]:
        """
        Get games from the database, ranked games first.

        Args:
            limit: Maximum number of games to return
            rank_from: Minimum rank to include (lower number = higher rank)
            rank_to: Maximum rank to include

        Returns:
            List of games
        """
        query = """
            SELECT id, title, rank, players, duration, age, weight
            FROM games
            WHERE 1=1
        """
        params = []

        # Rank range filters
        if rank_from is not None:
            query += " AND rank >= ?"
            params.append(rank_from)
        if rank_to is not None:
            query += " AND rank <= ? AND rank > 0"
            params.append(rank_to)

        # Unranked (0) games sort last
        query += " ORDER BY rank = 0, rank ASC, id ASC"

        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()

        games = [Game(*row) for row in rows]
        logger.info(f"Retrieved {len(games)} games from database")
        return games

    def get_statistics(self) -> dict:
        """
        Get statistics about games in the database.

        Returns:
            Dictionary with statistics
        """
        conn = self._connect()
        try:
            total_games, ranked_games = conn.execute(
                "SELECT COUNT(*), COALESCE(SUM(rank > 0), 0) FROM games"
            ).fetchone()
        finally:
            conn.close()

        return {
            'total_games_in_db': total_games,
            'ranked_games_in_db': ranked_games,
        }
