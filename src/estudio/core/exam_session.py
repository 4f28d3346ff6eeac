"""Exam session engine.

A bounded, optionally timed run over a sample of questions:

    CONFIGURING --start--> IN_PROGRESS <--pause/resume--> PAUSED
                                |                            |
                                +--finish / last / timeout---+--> FINISHED

Questions are drawn by shuffle-then-slice: the full list is shuffled
(when random_order) and the first question_count items are kept. With
random_order off the exam is always the leading prefix of the set.

Scoring (on FINISHED):
- answered = number of local answers, skipped = total - answered
- score = round(sum / (answered * 5) * 100), 0 when nothing answered
- high = answers >= 4, low = answers <= 2, average rounded to 1 decimal
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable

import structlog

from estudio.core.app_state import AppState
from estudio.core.progress import ProgressUpdate
from estudio.core.questions import Question
from estudio.core.study_session import shuffle_indices

logger = structlog.get_logger(__name__)

HIGH_CONFIDENCE = 4
LOW_CONFIDENCE = 2


class ExamState(Enum):
    """Estados del examen."""

    CONFIGURING = auto()
    IN_PROGRESS = auto()
    PAUSED = auto()
    FINISHED = auto()


@dataclass
class ExamConfig:
    """Exam settings chosen before starting."""

    question_count: int = 20
    time_per_question: int = 90  # seconds, informational
    total_time_minutes: int = 30
    use_timer: bool = True
    random_order: bool = True

    @property
    def total_seconds(self) -> int:
        return self.total_time_minutes * 60


@dataclass
class ExamResults:
    """Summary shown when the exam is finished."""

    total: int
    answered: int
    skipped: int
    score: int
    high_confidence: int
    low_confidence: int
    average_confidence: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "answered": self.answered,
            "skipped": self.skipped,
            "score": self.score,
            "high_confidence": self.high_confidence,
            "low_confidence": self.low_confidence,
            "average_confidence": self.average_confidence,
        }


def score_answers(answers: dict[int, int], total: int) -> ExamResults:
    """Compute exam results from local answers (numero -> confidence)."""
    values = list(answers.values())
    answered = len(values)
    total_conf = sum(values)

    if answered > 0:
        score = round(total_conf / (answered * 5) * 100)
        average = round(total_conf / answered, 1)
    else:
        score = 0
        average = 0.0

    return ExamResults(
        total=total,
        answered=answered,
        skipped=total - answered,
        score=score,
        high_confidence=sum(1 for c in values if c >= HIGH_CONFIDENCE),
        low_confidence=sum(1 for c in values if c <= LOW_CONFIDENCE),
        average_confidence=average,
    )


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class ExamSession:
    """Timed exam over a sample of questions.

    Args:
        state: Application state used to record progress
        questions: Pool to draw from (defaults to the current set)
        config: Exam settings
        rng: Random source (for reproducible draws)
    """

    def __init__(
        self,
        state: AppState,
        questions: list[Question] | None = None,
        config: ExamConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.app_state = state
        self.config = config or ExamConfig()
        self._pool: list[Question] = list(
            state.questions if questions is None else questions
        )
        self._rng = rng or random.Random()

        self.state = ExamState.CONFIGURING
        self.exam_questions: list[Question] = []
        self.index = 0
        self.answers: dict[int, int] = {}
        self.answer_shown = False
        self.time_left = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def draw_questions(self) -> list[Question]:
        """Shuffle-then-slice sample of the pool."""
        if self.config.random_order:
            ordered = [self._pool[i] for i in shuffle_indices(len(self._pool), self._rng)]
        else:
            ordered = list(self._pool)
        count = max(0, min(self.config.question_count, len(ordered)))
        return ordered[:count]

    def start(self) -> None:
        """Draw questions and start the exam (restarts a finished one)."""
        self.exam_questions = self.draw_questions()
        self.index = 0
        self.answers = {}
        self.answer_shown = False
        self.time_left = self.config.total_seconds if self.config.use_timer else 0
        self.state = ExamState.IN_PROGRESS

        logger.info(
            "exam.started",
            set_id=self.app_state.set_id,
            questions=len(self.exam_questions),
            use_timer=self.config.use_timer,
            time_left=self.time_left,
        )

        if not self.exam_questions:
            self.finish()

    def pause(self) -> None:
        if self.state is ExamState.IN_PROGRESS:
            self.state = ExamState.PAUSED

    def resume(self) -> None:
        if self.state is ExamState.PAUSED:
            self.state = ExamState.IN_PROGRESS

    def toggle_pause(self) -> None:
        if self.state is ExamState.PAUSED:
            self.resume()
        else:
            self.pause()

    def finish(self) -> None:
        """Finish now (manual finish, last question, or timeout)."""
        if self.state in (ExamState.IN_PROGRESS, ExamState.PAUSED):
            self.state = ExamState.FINISHED
            logger.info(
                "exam.finished",
                set_id=self.app_state.set_id,
                answered=len(self.answers),
                total=len(self.exam_questions),
                time_left=self.time_left,
            )

    def tick(self, seconds: int = 1) -> None:
        """Advance the countdown; reaching zero finishes the exam.

        Only counts while IN_PROGRESS with the timer enabled.
        """
        if self.state is not ExamState.IN_PROGRESS or not self.config.use_timer:
            return
        self.time_left = max(0, self.time_left - seconds)
        if self.time_left <= 0:
            logger.info("exam.time_up", set_id=self.app_state.set_id)
            self.finish()

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    @property
    def total(self) -> int:
        return len(self.exam_questions)

    @property
    def position(self) -> int:
        return self.index + 1 if self.exam_questions else 0

    @property
    def is_running(self) -> bool:
        return self.state is ExamState.IN_PROGRESS

    @property
    def current(self) -> Question | None:
        if self.state not in (ExamState.IN_PROGRESS, ExamState.PAUSED):
            return None
        if not self.exam_questions:
            return None
        return self.exam_questions[self.index]

    def show_answer(self) -> None:
        if self.state is ExamState.IN_PROGRESS and self.current is not None:
            self.answer_shown = True

    def _advance(self) -> None:
        if self.index < len(self.exam_questions) - 1:
            self.index += 1
            self.answer_shown = False
        else:
            self.finish()

    def answer(self, confidence: int) -> None:
        """Record confidence for the current question and advance.

        Precondition: confidence is in 1-5. Stored locally for scoring and
        submitted as a progress update before advancing.
        """
        if self.state is not ExamState.IN_PROGRESS:
            return
        question = self.current
        if question is None:
            return

        self.answers[question.numero] = confidence
        stored = self.app_state.update_progress(
            question.numero, ProgressUpdate(confidence=confidence)
        )
        if stored is None:
            logger.warning("exam.progress_not_saved", question_id=question.numero)

        self._advance()

    def skip(self) -> None:
        """Advance without recording anything."""
        if self.state is not ExamState.IN_PROGRESS:
            return
        self._advance()

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def results(self) -> ExamResults | None:
        """Results once finished, None before."""
        if self.state is not ExamState.FINISHED:
            return None
        return score_answers(self.answers, len(self.exam_questions))

    def timer_level(self) -> str:
        """'danger' under 10% of the time, 'warning' under 25%, else ''."""
        if not self.config.use_timer or self.config.total_seconds <= 0:
            return ""
        percent = self.time_left / self.config.total_seconds
        if percent < 0.1:
            return "danger"
        if percent < 0.25:
            return "warning"
        return ""


class ExamTimer:
    """Cooperative 1-second countdown for an exam.

    Runs as an asyncio task while the exam is IN_PROGRESS; the task ends by
    itself on pause or finish and is cancelled by stop().

    Args:
        exam: Exam to tick
        interval: Seconds between ticks
        on_tick: Optional callback after each tick
    """

    def __init__(
        self,
        exam: ExamSession,
        interval: float = 1.0,
        on_tick: Callable[[ExamSession], None] | None = None,
    ):
        self.exam = exam
        self.interval = interval
        self.on_tick = on_tick
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Start ticking (call again after resume)."""
        if self.running:
            return self._task  # type: ignore[return-value]
        self._task = asyncio.create_task(self._run())
        return self._task

    async def _run(self) -> None:
        while self.exam.is_running and self.exam.config.use_timer:
            await asyncio.sleep(self.interval)
            if not self.exam.is_running:
                break
            self.exam.tick()
            if self.on_tick is not None:
                self.on_tick(self.exam)

    async def stop(self) -> None:
        """Cancel the countdown task (teardown)."""
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
