"""Dashboard aggregates over a question set and its progress."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

from estudio.core.progress import ProgressRecord
from estudio.core.questions import Question

NO_SECTION = "Sin sección"

_EMPTY = ProgressRecord()


@dataclass
class SetStats:
    """Totals for a whole set."""

    total: int
    answered: int
    pending: int
    high_confidence: int
    low_confidence: int
    marked_for_review: int
    average_confidence: float
    progress_percent: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SectionStats:
    """Totals for one section."""

    name: str
    total: int
    answered: int
    average_confidence: float
    progress_percent: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compute_stats(
    questions: Iterable[Question], progress: Mapping[int, ProgressRecord]
) -> SetStats:
    """Aggregate progress over a set.

    A question counts as answered once it has at least one confidence
    submission. The average is the mean of per-question averages.
    """
    total = answered = high = low = marked = 0
    promedio_sum = 0.0

    for q in questions:
        total += 1
        p = progress.get(q.numero, _EMPTY)
        if p.confianza_count > 0:
            answered += 1
            promedio_sum += p.confianza_promedio or 0
        if p.ultima_confianza is not None and p.ultima_confianza >= 4:
            high += 1
        if p.ultima_confianza is not None and p.ultima_confianza <= 2:
            low += 1
        if p.marcada_para_repaso:
            marked += 1

    return SetStats(
        total=total,
        answered=answered,
        pending=total - answered,
        high_confidence=high,
        low_confidence=low,
        marked_for_review=marked,
        average_confidence=round(promedio_sum / answered, 1) if answered else 0.0,
        progress_percent=round(answered / total * 100) if total else 0,
    )


def compute_section_stats(
    questions: Iterable[Question], progress: Mapping[int, ProgressRecord]
) -> list[SectionStats]:
    """Per-section aggregates, in order of first appearance."""
    totals: dict[str, list[float]] = {}  # name -> [total, answered, promedio_sum]

    for q in questions:
        entry = totals.setdefault(q.seccion or NO_SECTION, [0, 0, 0.0])
        entry[0] += 1
        p = progress.get(q.numero, _EMPTY)
        if p.confianza_count > 0:
            entry[1] += 1
            entry[2] += p.confianza_promedio or 0

    return [
        SectionStats(
            name=name,
            total=int(total),
            answered=int(answered),
            average_confidence=round(promedio_sum / answered, 1) if answered else 0.0,
            progress_percent=round(answered / total * 100) if total else 0,
        )
        for name, (total, answered, promedio_sum) in totals.items()
    ]
