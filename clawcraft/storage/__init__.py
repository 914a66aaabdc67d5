"""
Storage layer - durable conversation memory.

- Database: aiosqlite connection manager
- SqliteMemoryStore: pair-keyed memory records
"""

from .database import Database
from .memory_repository import SqliteMemoryStore

__all__ = [
    "Database",
    "SqliteMemoryStore",
]
