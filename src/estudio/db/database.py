"""SQLite database connection and schema management.

Provides connection management and schema initialization for question
sets and progress records.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/db/estudio.db")

# Current database path (module-level for simplicity in CLI context)
_db_path: Path | None = None


class StorageError(Exception):
    """Raised when the backend store cannot complete an operation."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Error de almacenamiento en '{operation}': {cause}")


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to data/db/estudio.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Path of the database currently in use."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success and rolls back on error, so each block is
    all-or-nothing.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM progress").fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Tabla: question_sets (conjuntos subidos por el usuario)
        CREATE TABLE IF NOT EXISTS question_sets (
            set_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            questions TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- Tabla: progress (un registro por pregunta y conjunto)
        -- Sin FK: los conjuntos incluidos no viven en la base de datos
        CREATE TABLE IF NOT EXISTS progress (
            set_id TEXT NOT NULL,
            question_id INTEGER NOT NULL,
            veces_mostrada INTEGER NOT NULL DEFAULT 0,
            ultima_confianza INTEGER CHECK(
                ultima_confianza IS NULL OR ultima_confianza BETWEEN 1 AND 5
            ),
            confianza_sum INTEGER NOT NULL DEFAULT 0,
            confianza_count INTEGER NOT NULL DEFAULT 0,
            confianza_promedio REAL,
            ultima_fecha_vista TEXT,
            marcada_para_repaso INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (set_id, question_id)
        );

        -- Índices
        CREATE INDEX IF NOT EXISTS idx_progress_set ON progress(set_id);
        CREATE INDEX IF NOT EXISTS idx_question_sets_created
            ON question_sets(created_at);
        """
    )
