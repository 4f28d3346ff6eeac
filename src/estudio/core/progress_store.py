"""Keyed collection of progress records per question set.

ProgressStore is the only component that mutates progress. It keeps an
in-memory baseline per set (filled by load()) and performs
read-modify-write updates against the repository.

Failure policy:
- load() logs backend errors and returns an empty map
- update() / reset() log backend errors and return None / False,
  leaving the in-memory baseline unchanged
"""

from __future__ import annotations

from types import MappingProxyType, ModuleType
from typing import Any, Mapping

import structlog

from estudio.core.progress import ProgressRecord, ProgressUpdate, apply_update
from estudio.db import progress_repository
from estudio.db.database import StorageError

logger = structlog.get_logger(__name__)


class ProgressStore:
    """Progress records keyed by (set_id, question_id).

    Args:
        repository: Backend with load_progress / get_progress /
            upsert_progress / delete_progress (defaults to SQLite)
    """

    def __init__(self, repository: ModuleType | Any = progress_repository):
        self._repository = repository
        self._cache: dict[str, dict[int, ProgressRecord]] = {}

    def load(self, set_id: str) -> dict[int, ProgressRecord]:
        """Load all records of a set and cache them.

        Returns:
            Mapping question_id -> ProgressRecord (empty on failure)
        """
        try:
            records = dict(self._repository.load_progress(set_id))
        except StorageError as e:
            logger.error("progress.load_failed", set_id=set_id, error=str(e))
            records = {}

        self._cache[set_id] = records
        logger.debug("progress.loaded", set_id=set_id, records=len(records))
        return dict(records)

    def records(self, set_id: str) -> Mapping[int, ProgressRecord]:
        """Read-only view of the cached records of a set."""
        return MappingProxyType(self._cache.setdefault(set_id, {}))

    def get_or_create(self, set_id: str, question_id: int) -> ProgressRecord:
        """Cached record, or a zero-value record if none exists yet.

        The zero-value record is not persisted.
        """
        record = self._cache.get(set_id, {}).get(question_id)
        if record is None:
            return ProgressRecord()
        return record

    def update(
        self,
        set_id: str,
        question_id: int,
        update: ProgressUpdate,
    ) -> ProgressRecord | None:
        """Read-modify-write a record (last write wins).

        Returns:
            The stored record, or None if the backend failed
        """
        try:
            existing = self._repository.get_progress(set_id, question_id)
            record = apply_update(existing or ProgressRecord(), update)
            stored = self._repository.upsert_progress(set_id, question_id, record)
        except StorageError as e:
            logger.error(
                "progress.update_failed",
                set_id=set_id,
                question_id=question_id,
                error=str(e),
            )
            return None

        self._cache.setdefault(set_id, {})[question_id] = stored
        logger.debug(
            "progress.updated",
            set_id=set_id,
            question_id=question_id,
            **update.to_dict(),
        )
        return stored

    def reset(self, set_id: str) -> bool:
        """Delete every record of a set.

        Returns:
            True on success, False if the backend failed
        """
        try:
            deleted = self._repository.delete_progress(set_id)
        except StorageError as e:
            logger.error("progress.reset_failed", set_id=set_id, error=str(e))
            return False

        self._cache[set_id] = {}
        logger.info("progress.reset", set_id=set_id, deleted=deleted)
        return True

    def forget(self, set_id: str) -> None:
        """Drop the cached baseline of a set (after the set is deleted)."""
        self._cache.pop(set_id, None)

    def export(self, set_id: str) -> dict[str, dict[str, Any]]:
        """Cached records as a JSON-ready dict keyed by question id."""
        return {
            str(question_id): record.to_dict()
            for question_id, record in sorted(self._cache.get(set_id, {}).items())
        }
