import logging
import os
import sqlite3

logger = logging.getLogger(__name__)


def create_database(db_path="bgg_games.db"):
    """Create the database and tables for BGG game data."""

    # Ensure database directory exists (only if path contains directory)
    db_dir = os.path.dirname(str(db_path))
    if db_dir:  # Only create directory if there is one
        os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()

        # id is the BGG object id; 0 / 0.0 / '' mean unknown
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS games (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL DEFAULT '',
                rank INTEGER NOT NULL DEFAULT 0,
                players INTEGER NOT NULL DEFAULT 0,
                duration INTEGER NOT NULL DEFAULT 0,
                age INTEGER NOT NULL DEFAULT 0,
                weight REAL NOT NULL DEFAULT 0.0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
    finally:
        conn.close()
    logger.info(f"Database ready at {db_path}")
