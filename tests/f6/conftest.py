"""Fixtures for F6 tests - Web API."""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from estudio.config.app_config import DATA_DIR_ENV, clear_config_cache
from estudio.core.questions import Question
from estudio.db import question_sets_repository
from estudio.db.database import init_db
from estudio.web.api import create_app


@pytest.fixture
def data_dir(tmp_path, monkeypatch) -> Path:
    """Isolated data dir with a built-in set and an uploaded set."""
    root = tmp_path / "data"
    sets_dir = root / "sets"
    sets_dir.mkdir(parents=True)
    (sets_dir / "incluido.json").write_text(
        json.dumps(
            [
                {"numero": 1, "seccion": "A", "tema": "a1", "pregunta": "¿Uno?"},
                {"numero": 2, "seccion": "B", "tema": "b1", "pregunta": "¿Dos?"},
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )

    monkeypatch.setenv(DATA_DIR_ENV, str(root))
    clear_config_cache()

    init_db(root / "db" / "estudio.db")
    question_sets_repository.save_question_set(
        "subido",
        "Subido",
        [
            Question(numero=1, seccion="X", pregunta="¿Primera?"),
            Question(numero=2, seccion="X", pregunta="¿Segunda?"),
            Question(numero=3, seccion="", pregunta="¿Tercera?"),
        ],
    )
    yield root
    clear_config_cache()


@pytest.fixture
def client(data_dir):
    """Test client with lifespan events."""
    with TestClient(create_app()) as test_client:
        yield test_client
