"""Application state shared by Study, Review and Exam sessions.

AppState holds the selected question set and delegates every progress
mutation to the ProgressStore. Sessions receive it in their constructor
instead of reaching for module-level globals.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping

import structlog

from estudio.core.progress import ProgressRecord, ProgressUpdate
from estudio.core.progress_store import ProgressStore
from estudio.core.questions import Question, QuestionSet, QuestionSetNotFoundError
from estudio.db import question_sets_repository

logger = structlog.get_logger(__name__)

SetLoader = Callable[[str], "QuestionSet | None"]


class AppState:
    """Current question set plus its progress baseline.

    Mutation entry points: select_set(), use_set(), update_progress(),
    reset_progress().

    Args:
        store: Progress store (owns all progress records)
        sets_dir: Directory of built-in sets, used by the default loader
        set_loader: Override for loading a set by id
    """

    def __init__(
        self,
        store: ProgressStore | None = None,
        sets_dir: Path | None = None,
        set_loader: SetLoader | None = None,
    ):
        self.store = store or ProgressStore()
        self.sets_dir = sets_dir
        self._set_loader = set_loader or (
            lambda set_id: question_sets_repository.load_question_set(
                set_id, sets_dir=self.sets_dir
            )
        )
        self._current_set: QuestionSet | None = None

    @property
    def current_set(self) -> QuestionSet | None:
        return self._current_set

    @property
    def set_id(self) -> str | None:
        return self._current_set.set_id if self._current_set else None

    @property
    def questions(self) -> list[Question]:
        if self._current_set is None:
            return []
        return list(self._current_set.questions)

    @property
    def progress(self) -> Mapping[int, ProgressRecord]:
        """Read-only progress of the current set."""
        if self._current_set is None:
            return {}
        return self.store.records(self._current_set.set_id)

    def select_set(self, set_id: str) -> QuestionSet:
        """Load a question set and its progress.

        Raises:
            QuestionSetNotFoundError: If the set does not exist
        """
        question_set = self._set_loader(set_id)
        if question_set is None:
            raise QuestionSetNotFoundError(set_id)
        return self.use_set(question_set)

    def use_set(self, question_set: QuestionSet) -> QuestionSet:
        """Make an already loaded set current and load its progress."""
        self._current_set = question_set
        records = self.store.load(question_set.set_id)
        logger.info(
            "app_state.set_selected",
            set_id=question_set.set_id,
            questions=len(question_set.questions),
            progress_records=len(records),
        )
        return question_set

    def get_progress(self, question_id: int) -> ProgressRecord:
        """Progress of a question in the current set (zero-value if none)."""
        if self._current_set is None:
            return ProgressRecord()
        return self.store.get_or_create(self._current_set.set_id, question_id)

    def update_progress(
        self, question_id: int, update: ProgressUpdate
    ) -> ProgressRecord | None:
        """Persist an update for the current set.

        Returns:
            Stored record, or None if no set is selected or the write failed
        """
        if self._current_set is None:
            logger.warning("app_state.no_set_selected", question_id=question_id)
            return None
        return self.store.update(self._current_set.set_id, question_id, update)

    def reset_progress(self) -> bool:
        """Delete all progress of the current set."""
        if self._current_set is None:
            return False
        return self.store.reset(self._current_set.set_id)
