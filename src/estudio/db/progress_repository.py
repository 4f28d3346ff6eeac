"""Repository functions for the progress table.

Every function raises StorageError when SQLite fails; callers decide
whether to degrade (reads) or report a sentinel (writes).
"""

from __future__ import annotations

import sqlite3

import structlog

from estudio.core.progress import ProgressRecord
from estudio.db.database import StorageError, get_db

logger = structlog.get_logger(__name__)


def load_progress(set_id: str) -> dict[int, ProgressRecord]:
    """Get all progress records of a set.

    Args:
        set_id: Question set identifier

    Returns:
        Mapping question_id -> ProgressRecord (empty if none exist)

    Raises:
        StorageError: If the database cannot be read
    """
    try:
        with get_db() as conn:
            rows = conn.execute(
                "SELECT * FROM progress WHERE set_id = ?", (set_id,)
            ).fetchall()
    except (sqlite3.Error, OSError) as e:
        raise StorageError("load_progress", e) from e

    return {row["question_id"]: _row_to_record(row) for row in rows}


def get_progress(set_id: str, question_id: int) -> ProgressRecord | None:
    """Get a single progress record.

    Returns:
        ProgressRecord if found, None otherwise

    Raises:
        StorageError: If the database cannot be read
    """
    try:
        with get_db() as conn:
            row = conn.execute(
                "SELECT * FROM progress WHERE set_id = ? AND question_id = ?",
                (set_id, question_id),
            ).fetchone()
    except (sqlite3.Error, OSError) as e:
        raise StorageError("get_progress", e) from e

    if row is None:
        return None

    return _row_to_record(row)


def upsert_progress(
    set_id: str, question_id: int, record: ProgressRecord
) -> ProgressRecord:
    """Insert or replace a progress record (last write wins).

    Returns:
        The record as stored

    Raises:
        StorageError: If the write fails
    """
    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO progress (
                    set_id, question_id, veces_mostrada, ultima_confianza,
                    confianza_sum, confianza_count, confianza_promedio,
                    ultima_fecha_vista, marcada_para_repaso
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(set_id, question_id) DO UPDATE SET
                    veces_mostrada = excluded.veces_mostrada,
                    ultima_confianza = excluded.ultima_confianza,
                    confianza_sum = excluded.confianza_sum,
                    confianza_count = excluded.confianza_count,
                    confianza_promedio = excluded.confianza_promedio,
                    ultima_fecha_vista = excluded.ultima_fecha_vista,
                    marcada_para_repaso = excluded.marcada_para_repaso
                """,
                (
                    set_id,
                    question_id,
                    record.veces_mostrada,
                    record.ultima_confianza,
                    record.confianza_sum,
                    record.confianza_count,
                    record.confianza_promedio,
                    record.ultima_fecha_vista,
                    int(record.marcada_para_repaso),
                ),
            )
            row = conn.execute(
                "SELECT * FROM progress WHERE set_id = ? AND question_id = ?",
                (set_id, question_id),
            ).fetchone()
    except (sqlite3.Error, OSError) as e:
        raise StorageError("upsert_progress", e) from e

    logger.debug("progress.upserted", set_id=set_id, question_id=question_id)
    return _row_to_record(row)


def delete_progress(set_id: str) -> int:
    """Delete every progress record of a set.

    Returns:
        Number of deleted records

    Raises:
        StorageError: If the delete fails
    """
    try:
        with get_db() as conn:
            cursor = conn.execute(
                "DELETE FROM progress WHERE set_id = ?", (set_id,)
            )
    except (sqlite3.Error, OSError) as e:
        raise StorageError("delete_progress", e) from e

    logger.debug("progress.deleted", set_id=set_id, count=cursor.rowcount)
    return cursor.rowcount


def _row_to_record(row) -> ProgressRecord:
    """Convert database row to ProgressRecord."""
    return ProgressRecord(
        veces_mostrada=row["veces_mostrada"],
        ultima_confianza=row["ultima_confianza"],
        confianza_sum=row["confianza_sum"],
        confianza_count=row["confianza_count"],
        confianza_promedio=row["confianza_promedio"],
        ultima_fecha_vista=row["ultima_fecha_vista"],
        marcada_para_repaso=bool(row["marcada_para_repaso"]),
    )
