"""Fixtures for F3 tests - Study, Review and Exam sessions."""

import random

import pytest

from estudio.core.app_state import AppState
from estudio.core.progress_store import ProgressStore
from estudio.core.questions import Question, QuestionSet


@pytest.fixture
def ten_questions() -> QuestionSet:
    """Ten questions, odd numbers in section A, even in B."""
    return QuestionSet(
        set_id="diez",
        name="Diez preguntas",
        questions=[
            Question(
                numero=n,
                seccion="A" if n % 2 else "B",
                tema=f"t{n % 3}",
                pregunta=f"Pregunta {n}",
                respuesta_super_corta=f"SC{n}",
                respuesta_corta=f"C{n}",
                respuesta_normal=f"N{n}",
            )
            for n in range(1, 11)
        ],
    )


@pytest.fixture
def repository(fake_repository):
    return fake_repository


@pytest.fixture
def state(ten_questions, repository) -> AppState:
    """AppState with the ten-question set selected."""
    app_state = AppState(
        store=ProgressStore(repository=repository),
        set_loader=lambda set_id: ten_questions if set_id == "diez" else None,
    )
    app_state.select_set("diez")
    return app_state


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
