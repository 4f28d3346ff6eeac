"""Repository functions for question sets.

Two sources are merged:
- built-in sets: JSON files in <data_dir>/sets/ (read-only)
- uploaded sets: rows of the question_sets table

Read failures are logged and degrade to empty results; write failures
are logged and reported as None / False.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path

import structlog

from estudio.core.questions import (
    BuiltinSetError,
    Question,
    QuestionSet,
    normalize_row,
    questions_from_rows,
)
from estudio.db.database import StorageError, get_db
from estudio.db.progress_repository import delete_progress

logger = structlog.get_logger(__name__)


@dataclass
class QuestionSetSummary:
    """Question set listing entry (without questions)."""

    set_id: str
    name: str
    created_at: str
    builtin: bool = False
    question_count: int = 0


# =============================================================================
# BUILT-IN SETS
# =============================================================================


def _load_builtin_file(path: Path) -> QuestionSet | None:
    """Load a bundled set file, or None if it is unreadable."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error("question_sets.builtin_load_failed", path=str(path), error=str(e))
        return None

    if isinstance(data, list):
        name, rows = path.stem, data
    else:
        name, rows = data.get("name", path.stem), data.get("questions", [])

    return QuestionSet(
        set_id=path.stem,
        name=name,
        questions=questions_from_rows(normalize_row(r) for r in rows),
        created_at="",
        builtin=True,
    )


def list_builtin_sets(sets_dir: Path | None) -> list[QuestionSet]:
    """Load every bundled set, sorted by id."""
    if sets_dir is None or not sets_dir.exists():
        return []

    sets = []
    for path in sorted(sets_dir.glob("*.json")):
        question_set = _load_builtin_file(path)
        if question_set is not None:
            sets.append(question_set)
    return sets


def _get_builtin_set(set_id: str, sets_dir: Path | None) -> QuestionSet | None:
    if sets_dir is None:
        return None
    path = sets_dir / f"{set_id}.json"
    if not path.exists():
        return None
    return _load_builtin_file(path)


def is_builtin(set_id: str, sets_dir: Path | None = None) -> bool:
    """Whether the set id belongs to a bundled set."""
    return sets_dir is not None and (sets_dir / f"{set_id}.json").exists()


# =============================================================================
# QUERIES
# =============================================================================


def list_question_sets(sets_dir: Path | None = None) -> list[QuestionSetSummary]:
    """List built-in sets followed by uploaded sets (newest first).

    Args:
        sets_dir: Directory of built-in sets (None = only uploaded sets)

    Returns:
        List of QuestionSetSummary (uploaded part empty on database errors)
    """
    summaries = [
        QuestionSetSummary(
            set_id=s.set_id,
            name=s.name,
            created_at=s.created_at,
            builtin=True,
            question_count=len(s.questions),
        )
        for s in list_builtin_sets(sets_dir)
    ]

    try:
        with get_db() as conn:
            rows = conn.execute(
                "SELECT set_id, name, created_at, questions FROM question_sets "
                "ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
    except (sqlite3.Error, OSError) as e:
        logger.error("question_sets.list_failed", error=str(e))
        return summaries

    for row in rows:
        try:
            question_count = len(json.loads(row["questions"] or "[]"))
        except json.JSONDecodeError as e:
            logger.error(
                "question_sets.list_failed", set_id=row["set_id"], error=str(e)
            )
            continue
        summaries.append(
            QuestionSetSummary(
                set_id=row["set_id"],
                name=row["name"],
                created_at=row["created_at"],
                builtin=False,
                question_count=question_count,
            )
        )

    return summaries


def load_question_set(
    set_id: str, sets_dir: Path | None = None
) -> QuestionSet | None:
    """Get a question set with its questions.

    Returns:
        QuestionSet if found, None if missing or unreadable
    """
    builtin = _get_builtin_set(set_id, sets_dir)
    if builtin is not None:
        return builtin

    try:
        with get_db() as conn:
            row = conn.execute(
                "SELECT * FROM question_sets WHERE set_id = ?", (set_id,)
            ).fetchone()
    except (sqlite3.Error, OSError) as e:
        logger.error("question_sets.load_failed", set_id=set_id, error=str(e))
        return None

    if row is None:
        return None

    try:
        return _row_to_set(row)
    except json.JSONDecodeError as e:
        logger.error("question_sets.load_failed", set_id=set_id, error=str(e))
        return None


# =============================================================================
# MUTATIONS
# =============================================================================


def save_question_set(
    set_id: str,
    name: str,
    questions: list[Question],
    sets_dir: Path | None = None,
) -> QuestionSet | None:
    """Insert or replace an uploaded question set.

    Returns:
        The stored QuestionSet, or None if the write failed

    Raises:
        BuiltinSetError: If set_id belongs to a bundled set
    """
    if is_builtin(set_id, sets_dir):
        raise BuiltinSetError(set_id)

    payload = json.dumps([q.to_dict() for q in questions], ensure_ascii=False)

    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO question_sets (set_id, name, questions)
                VALUES (?, ?, ?)
                ON CONFLICT(set_id) DO UPDATE SET
                    name = excluded.name,
                    questions = excluded.questions
                """,
                (set_id, name, payload),
            )
            row = conn.execute(
                "SELECT * FROM question_sets WHERE set_id = ?", (set_id,)
            ).fetchone()
    except (sqlite3.Error, OSError) as e:
        logger.error("question_sets.save_failed", set_id=set_id, error=str(e))
        return None

    logger.info("question_sets.saved", set_id=set_id, questions=len(questions))
    return _row_to_set(row)


def delete_question_set(set_id: str, sets_dir: Path | None = None) -> bool:
    """Delete an uploaded set and its progress records.

    Returns:
        True if deleted, False if not found or the delete failed

    Raises:
        BuiltinSetError: If set_id belongs to a bundled set
    """
    if is_builtin(set_id, sets_dir):
        raise BuiltinSetError(set_id)

    try:
        delete_progress(set_id)
        with get_db() as conn:
            cursor = conn.execute(
                "DELETE FROM question_sets WHERE set_id = ?", (set_id,)
            )
    except (sqlite3.Error, OSError, StorageError) as e:
        logger.error("question_sets.delete_failed", set_id=set_id, error=str(e))
        return False

    deleted = cursor.rowcount > 0
    if deleted:
        logger.info("question_sets.deleted", set_id=set_id)

    return deleted


def _row_to_set(row) -> QuestionSet:
    """Convert database row to QuestionSet."""
    rows = json.loads(row["questions"] or "[]")
    return QuestionSet(
        set_id=row["set_id"],
        name=row["name"],
        questions=questions_from_rows(rows),
        created_at=row["created_at"],
        builtin=False,
    )
