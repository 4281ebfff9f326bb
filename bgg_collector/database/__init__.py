"""
Database module for BGG game storage.

This module handles:
- Database schema creation
- Idempotent game upserts
- Game data retrieval and statistics
"""

from .operations import GameDatabase
from .models import create_database
from ..models import Game

__all__ = [
    "Game",
    "GameDatabase",
    "create_database",
]
