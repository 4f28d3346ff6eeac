"""Fixtures for F2 tests - SQLite repositories and spreadsheet import."""

import json
from pathlib import Path

import pytest
from openpyxl import Workbook

from estudio.db.database import init_db


@pytest.fixture
def db(tmp_path) -> Path:
    """Fresh database in a temporary directory."""
    db_path = tmp_path / "db" / "estudio.db"
    init_db(db_path)
    return db_path


@pytest.fixture
def sets_dir(tmp_path) -> Path:
    """Built-in sets directory with one bundled set."""
    directory = tmp_path / "sets"
    directory.mkdir()
    (directory / "incluido.json").write_text(
        json.dumps(
            {
                "name": "Incluido",
                "questions": [
                    {"numero": 1, "seccion": "S", "tema": "T", "pregunta": "¿Uno?"},
                    {"numero": 2, "seccion": "S", "tema": "T", "pregunta": "¿Dos?"},
                ],
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return directory


HEADERS = [
    "N°",
    "Sección",
    "Tema",
    "Pregunta",
    "Respuesta super corta",
    "Respuesta corta",
    "Respuesta normal",
]


@pytest.fixture
def xlsx_file(tmp_path) -> Path:
    """Workbook with accented headers, a blank row and a numeric answer."""
    wb = Workbook()
    ws = wb.active
    ws.append(HEADERS)
    ws.append([1, "Historia", "Edad Media", "¿Año de la batalla de las Navas?", 1212, "En 1212", None])
    ws.append([2, "Historia", "Edad Moderna", "¿Quién financió a Colón?", "Reyes Católicos", None, None])
    ws.append([None, None, None, None, None, None, None])
    ws.append([3, "Arte", "Barroco", "¿Autor de Las Meninas?", "Velázquez", "Diego Velázquez", "Pintado en 1656"])
    path = tmp_path / "Historia de España.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def csv_file(tmp_path) -> Path:
    """Semicolon separated file without a number column."""
    path = tmp_path / "repaso.csv"
    path.write_text(
        "Sección;Tema;Pregunta;Respuesta super corta\n"
        "A;a1;¿Primera?;Sí\n"
        "B;b1;¿Segunda?;No\n",
        encoding="utf-8",
    )
    return path
