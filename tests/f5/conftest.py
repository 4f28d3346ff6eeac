"""Fixtures for F5 tests - CLI commands."""

import json
from pathlib import Path

import pytest

from estudio.config.app_config import DATA_DIR_ENV, clear_config_cache


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Data directory with one built-in set and an empty database."""
    root = tmp_path / "data"
    sets_dir = root / "sets"
    sets_dir.mkdir(parents=True)
    (sets_dir / "incluido.json").write_text(
        json.dumps(
            {
                "name": "Conjunto incluido",
                "questions": [
                    {
                        "numero": 1,
                        "seccion": "Relieve",
                        "tema": "Montañas",
                        "pregunta": "¿Pico más alto de la península?",
                        "respuesta_super_corta": "Mulhacén",
                    },
                    {
                        "numero": 2,
                        "seccion": "Ríos",
                        "tema": "Vertientes",
                        "pregunta": "¿Vertiente del Guadalquivir?",
                        "respuesta_super_corta": "Atlántica",
                    },
                ],
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def env(data_dir, monkeypatch) -> dict[str, str]:
    """Environment for CliRunner pointing at the temporary data dir."""
    monkeypatch.setenv(DATA_DIR_ENV, str(data_dir))
    clear_config_cache()
    yield {DATA_DIR_ENV: str(data_dir)}
    clear_config_cache()


@pytest.fixture
def csv_file(tmp_path) -> Path:
    path = tmp_path / "Derecho Penal.csv"
    path.write_text(
        "N°,Sección,Tema,Pregunta,Respuesta super corta\n"
        "1,General,Dolo,¿Qué es el dolo?,Conocimiento y voluntad\n"
        "2,General,Culpa,¿Qué es la culpa?,Infracción del deber de cuidado\n"
        "3,Especial,Homicidio,¿Pena del homicidio?,10 a 15 años\n",
        encoding="utf-8",
    )
    return path
