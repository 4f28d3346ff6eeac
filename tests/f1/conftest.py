"""Fixtures for F1 tests - Question model, progress records and filters."""

import pytest

from estudio.core.progress import ProgressRecord
from estudio.core.questions import Question, QuestionSet


@pytest.fixture
def sample_questions() -> list[Question]:
    """Six questions over two sections (A, B)."""
    return [
        Question(numero=1, seccion="A", tema="a1", pregunta="P1", respuesta_super_corta="R1"),
        Question(numero=2, seccion="A", tema="a1", pregunta="P2", respuesta_super_corta="R2"),
        Question(numero=3, seccion="A", tema="a2", pregunta="P3", respuesta_super_corta="R3"),
        Question(numero=4, seccion="B", tema="b1", pregunta="P4", respuesta_super_corta="R4"),
        Question(numero=5, seccion="B", tema="b1", pregunta="P5", respuesta_super_corta="R5"),
        Question(numero=6, seccion="B", tema="b2", pregunta="P6", respuesta_super_corta="R6"),
    ]


@pytest.fixture
def sample_set(sample_questions) -> QuestionSet:
    return QuestionSet(set_id="demo", name="Demo", questions=sample_questions)


@pytest.fixture
def sample_progress() -> dict[int, ProgressRecord]:
    """Progress for questions 1, 2, 4 and a bookmark on 5."""
    return {
        1: ProgressRecord(
            veces_mostrada=2, ultima_confianza=4, confianza_sum=7,
            confianza_count=2, confianza_promedio=3.5,
        ),
        2: ProgressRecord(
            veces_mostrada=1, ultima_confianza=2, confianza_sum=2,
            confianza_count=1, confianza_promedio=2.0,
        ),
        4: ProgressRecord(
            veces_mostrada=3, ultima_confianza=5, confianza_sum=12,
            confianza_count=3, confianza_promedio=4.0,
        ),
        5: ProgressRecord(marcada_para_repaso=True),
    }
