"""Question selection for Review mode.

filter_questions() is a pure conjunction of independent predicates over
question attributes and progress state. A question passes only if every
active criterion accepts it; evaluation stops at the first rejection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from estudio.core.progress import MAX_CONFIDENCE, MIN_CONFIDENCE, ProgressRecord
from estudio.core.questions import Question, QuestionSet

Predicate = Callable[[Question, ProgressRecord], bool]

_EMPTY = ProgressRecord()


@dataclass(frozen=True)
class FilterCriteria:
    """Active review filters. Empty section/topic sets mean 'no filtering'."""

    sections: frozenset[str] = field(default_factory=frozenset)
    topics: frozenset[str] = field(default_factory=frozenset)
    min_confidence: int = MIN_CONFIDENCE
    max_confidence: int = MAX_CONFIDENCE
    include_no_confidence: bool = True
    max_views: int | None = None
    only_marked: bool = False


def criteria_for_all(question_set: QuestionSet) -> FilterCriteria:
    """Criteria with every section and topic selected (initial review state)."""
    return FilterCriteria(
        sections=frozenset(question_set.sections()),
        topics=frozenset(question_set.topics()),
    )


def available_topics(
    question_set: QuestionSet, selected_sections: Iterable[str]
) -> list[str]:
    """Topics offered for the currently selected sections.

    Read-only view for presentation; filter_questions() does not use it.
    """
    return question_set.topics_for_sections(selected_sections)


def _selects_all(selected: frozenset[str], values: set[str]) -> bool:
    """Empty selection, or every non-empty value present is selected."""
    return not selected or (bool(values) and values <= selected)


def _predicates(
    criteria: FilterCriteria, questions: list[Question]
) -> list[Predicate]:
    """Build only the predicates that are active for these criteria.

    Selecting every section (or topic) of the candidates is the same as no
    section filter, so questions with a blank section still pass.
    """
    predicates: list[Predicate] = []

    sections = {q.seccion for q in questions if q.seccion}
    if not _selects_all(criteria.sections, sections):
        predicates.append(lambda q, p: q.seccion in criteria.sections)

    topics = {q.tema for q in questions if q.tema}
    if not _selects_all(criteria.topics, topics):
        predicates.append(lambda q, p: q.tema in criteria.topics)

    def confidence_in_range(q: Question, p: ProgressRecord) -> bool:
        if p.ultima_confianza is None:
            return criteria.include_no_confidence
        return criteria.min_confidence <= p.ultima_confianza <= criteria.max_confidence

    predicates.append(confidence_in_range)

    if criteria.max_views is not None:
        predicates.append(lambda q, p: (p.confianza_count or 0) <= criteria.max_views)

    if criteria.only_marked:
        predicates.append(lambda q, p: p.marcada_para_repaso)

    return predicates


def filter_questions(
    questions: Iterable[Question],
    progress: Mapping[int, ProgressRecord],
    criteria: FilterCriteria,
) -> list[Question]:
    """Questions accepted by every active criterion, in input order.

    Args:
        questions: Candidate questions
        progress: Mapping numero -> ProgressRecord (missing = no progress)
        criteria: Active filters

    Returns:
        Filtered list (filtering it again with the same criteria is a no-op)
    """
    candidates = list(questions)
    predicates = _predicates(criteria, candidates)
    return [
        q
        for q in candidates
        if all(pred(q, progress.get(q.numero, _EMPTY)) for pred in predicates)
    ]
