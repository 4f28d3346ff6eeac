"""Study and Review session engine.

A session walks an ordered index sequence over a question list:

    BROWSING --show_answer--> ANSWER_SHOWN --submit/next/prev--> BROWSING

Navigation is clamped at both ends (no wraparound). Changing the question
list, the filter criteria or the shuffle mode rebuilds the sequence and
goes back to the first question.
"""

from __future__ import annotations

import random
from enum import Enum, auto
from typing import Mapping

import structlog

from estudio.core.app_state import AppState
from estudio.core.progress import ProgressRecord, ProgressUpdate
from estudio.core.question_filter import FilterCriteria, filter_questions
from estudio.core.questions import ANSWER_LEVELS, Question

logger = structlog.get_logger(__name__)

DEFAULT_ANSWER_LEVEL = "super_corta"


class SessionState(Enum):
    """Estados de la tarjeta actual."""

    BROWSING = auto()  # Pregunta visible, respuesta oculta
    ANSWER_SHOWN = auto()  # Respuesta visible, botones de confianza activos


def shuffle_indices(n: int, rng: random.Random | None = None) -> list[int]:
    """Random permutation of range(n) (Fisher-Yates)."""
    rng = rng or random.Random()
    indices = list(range(n))
    for i in range(n - 1, 0, -1):
        j = rng.randint(0, i)
        indices[i], indices[j] = indices[j], indices[i]
    return indices


class StudySession:
    """Sequential or shuffled walk through a list of questions.

    Args:
        state: Application state used to record progress
        questions: Questions to walk (defaults to the current set)
        random_order: Shuffle the sequence
        rng: Random source (for reproducible shuffles)
    """

    def __init__(
        self,
        state: AppState,
        questions: list[Question] | None = None,
        random_order: bool = False,
        rng: random.Random | None = None,
    ):
        self.app_state = state
        self._rng = rng or random.Random()
        self._random_order = random_order
        self._questions: list[Question] = list(
            state.questions if questions is None else questions
        )
        self.sequence: list[int] = []
        self.index = 0
        self.state = SessionState.BROWSING
        self.answer_level = DEFAULT_ANSWER_LEVEL
        self._rebuild()

    # -------------------------------------------------------------------------
    # Sequence
    # -------------------------------------------------------------------------

    def _rebuild(self) -> None:
        n = len(self._questions)
        if self._random_order:
            self.sequence = shuffle_indices(n, self._rng)
        else:
            self.sequence = list(range(n))
        self.restart()

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def random_order(self) -> bool:
        return self._random_order

    def set_questions(self, questions: list[Question]) -> None:
        """Replace the question list and start over."""
        self._questions = list(questions)
        self._rebuild()

    def set_random(self, random_order: bool) -> None:
        """Switch between sequential and shuffled order and start over."""
        self._random_order = random_order
        self._rebuild()

    def restart(self) -> None:
        """Back to the first question with the answer hidden."""
        self.index = 0
        self._reset_card()

    def _reset_card(self) -> None:
        self.state = SessionState.BROWSING
        self.answer_level = DEFAULT_ANSWER_LEVEL

    # -------------------------------------------------------------------------
    # Current card
    # -------------------------------------------------------------------------

    @property
    def total(self) -> int:
        return len(self.sequence)

    @property
    def position(self) -> int:
        """1-based position of the current card (0 when empty)."""
        return self.index + 1 if self.sequence else 0

    @property
    def percent(self) -> int:
        if not self.sequence:
            return 0
        return round(self.position / self.total * 100)

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index >= len(self.sequence) - 1

    @property
    def answer_shown(self) -> bool:
        return self.state is SessionState.ANSWER_SHOWN

    @property
    def current(self) -> Question | None:
        if not self.sequence:
            return None
        return self._questions[self.sequence[self.index]]

    @property
    def current_progress(self) -> ProgressRecord:
        question = self.current
        if question is None:
            return ProgressRecord()
        return self.app_state.get_progress(question.numero)

    def current_answer(self) -> str:
        """Answer of the current card at the selected level."""
        question = self.current
        if question is None:
            return ""
        return question.answer(self.answer_level)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def show_answer(self) -> None:
        if self.current is not None:
            self.state = SessionState.ANSWER_SHOWN

    def set_answer_level(self, level: str) -> None:
        """Select the answer variant (super_corta, corta, normal)."""
        if level not in ANSWER_LEVELS:
            raise ValueError(f"Nivel de respuesta inválido: {level}")
        self.answer_level = level

    def next(self) -> bool:
        """Advance without recording confidence.

        Returns:
            True if the index moved
        """
        if self.is_last:
            return False
        self.index += 1
        self._reset_card()
        return True

    skip = next

    def prev(self) -> bool:
        """Go back one card.

        Returns:
            True if the index moved
        """
        if self.index <= 0:
            return False
        self.index -= 1
        self._reset_card()
        return True

    def submit_confidence(self, level: int) -> ProgressRecord | None:
        """Record a confidence level for the current card and advance.

        Precondition: level is in 1-5. The update is submitted before
        advancing; a failed write does not block navigation. On the last
        card the index stays put.

        Returns:
            Stored progress record, or None if nothing was stored
        """
        question = self.current
        if question is None:
            return None

        stored = self.app_state.update_progress(
            question.numero, ProgressUpdate(confidence=level)
        )
        if stored is None:
            logger.warning(
                "study_session.progress_not_saved", question_id=question.numero
            )

        if not self.next():
            self._reset_card()
        return stored

    def toggle_bookmark(self) -> ProgressRecord | None:
        """Flip the review bookmark of the current card (position unchanged)."""
        question = self.current
        if question is None:
            return None

        marked = not self.current_progress.marcada_para_repaso
        return self.app_state.update_progress(
            question.numero, ProgressUpdate(marked=marked)
        )


class ReviewSession(StudySession):
    """Study session over the questions accepted by a filter.

    The filter is evaluated against the progress baseline when the criteria
    are set; later progress updates do not reshuffle the running session.
    """

    def __init__(
        self,
        state: AppState,
        criteria: FilterCriteria | None = None,
        random_order: bool = False,
        rng: random.Random | None = None,
    ):
        self.criteria = criteria or FilterCriteria()
        super().__init__(
            state,
            questions=self._filtered(state, self.criteria),
            random_order=random_order,
            rng=rng,
        )

    @staticmethod
    def _filtered(state: AppState, criteria: FilterCriteria) -> list[Question]:
        progress: Mapping[int, ProgressRecord] = state.progress
        return filter_questions(state.questions, progress, criteria)

    def set_criteria(self, criteria: FilterCriteria) -> None:
        """Apply new filters and start over."""
        self.criteria = criteria
        self.set_questions(self._filtered(self.app_state, criteria))
        logger.debug("review_session.filtered", matches=self.total)
