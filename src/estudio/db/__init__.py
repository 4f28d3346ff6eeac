"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for question sets and progress records
"""

from estudio.db.database import StorageError, get_db, init_db

__all__ = ["StorageError", "get_db", "init_db"]
