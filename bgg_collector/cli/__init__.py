"""
Command-line interface for the BGG game collector.

This module provides CLI commands for:
- Running a collection to the console or the SQLite store
- Showing store statistics
"""

from .main import main

__all__ = [
    "main",
]
