"""Question set import from spreadsheets.

Responsibilities:
- Detect file format (.xlsx / .csv)
- Read the first sheet and normalize its headers
- Convert rows into Questions
- Generate a set id from the file name
- Register the set in SQLite
"""

from __future__ import annotations

import csv
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import structlog
from openpyxl import load_workbook

from estudio.core.questions import Question, normalize_row, questions_from_rows
from estudio.db import question_sets_repository

logger = structlog.get_logger(__name__)

SUPPORTED_FORMATS = ("xlsx", "csv")


@dataclass
class ImportResult:
    """Result of a question set import."""

    set_id: str
    name: str
    question_count: int
    message: str


class QuestionImportError(Exception):
    """Base exception for question import errors."""

    pass


class SourceFileNotFoundError(QuestionImportError):
    """Raised when the source file doesn't exist."""

    def __init__(self, file_path: Path):
        self.file_path = file_path
        super().__init__(f"Archivo no encontrado: {file_path}")


class UnsupportedFormatError(QuestionImportError):
    """Raised when the file format is not supported."""

    def __init__(self, file_path: Path):
        self.file_path = file_path
        super().__init__(
            f"Formato no soportado: {file_path.suffix or '(sin extensión)'} "
            f"(usa .xlsx o .csv)"
        )


class EmptySheetError(QuestionImportError):
    """Raised when the sheet has no header or no data rows."""

    def __init__(self, file_path: Path):
        self.file_path = file_path
        super().__init__(f"El archivo no contiene preguntas: {file_path.name}")


class DuplicateQuestionError(QuestionImportError):
    """Raised when two rows share the same question number."""

    def __init__(self, numero: int):
        self.numero = numero
        super().__init__(f"Número de pregunta repetido: {numero}")


class SaveFailedError(QuestionImportError):
    """Raised when the imported set cannot be stored."""

    def __init__(self, set_id: str):
        self.set_id = set_id
        super().__init__(f"No se pudo guardar el conjunto '{set_id}'")


# =============================================================================
# READING
# =============================================================================


def import_questions(file_path: Path) -> list[Question]:
    """Read questions from a spreadsheet.

    Args:
        file_path: Path to a .xlsx or .csv file

    Returns:
        Questions in row order

    Raises:
        SourceFileNotFoundError: If the file doesn't exist
        UnsupportedFormatError: If the extension is not .xlsx or .csv
        EmptySheetError: If there are no data rows
        DuplicateQuestionError: If a question number appears twice
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise SourceFileNotFoundError(file_path)

    fmt = _detect_format(file_path)
    logger.info("import_questions.start", file=str(file_path), format=fmt)

    if fmt == "xlsx":
        rows = list(_read_xlsx(file_path))
    else:
        rows = list(_read_csv(file_path))

    if not rows:
        raise EmptySheetError(file_path)

    questions = questions_from_rows(rows)
    _check_unique(questions)

    logger.info("import_questions.parsed", file=str(file_path), questions=len(questions))
    return questions


def _detect_format(file_path: Path) -> str:
    ext = file_path.suffix.lower().lstrip(".")
    if ext not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(file_path)
    return ext


def _rows_from_table(table: Iterator[tuple[Any, ...] | list[Any]]) -> Iterator[dict[str, Any]]:
    """Header row + data rows -> normalized dicts (blank rows skipped)."""
    header = next(table, None)
    if header is None:
        return

    columns = [c if c not in (None, "") else None for c in header]

    for values in table:
        if all(v is None or str(v).strip() == "" for v in values):
            continue
        raw = {col: values[i] if i < len(values) else None for i, col in enumerate(columns)}
        yield normalize_row(raw)


def _read_xlsx(file_path: Path) -> Iterator[dict[str, Any]]:
    workbook = load_workbook(file_path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        yield from _rows_from_table(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_csv(file_path: Path) -> Iterator[dict[str, Any]]:
    with open(file_path, encoding="utf-8-sig", newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel
        yield from _rows_from_table(iter(csv.reader(f, dialect)))


def _check_unique(questions: list[Question]) -> None:
    seen: set[int] = set()
    for question in questions:
        if question.numero in seen:
            raise DuplicateQuestionError(question.numero)
        seen.add(question.numero)


# =============================================================================
# REGISTRATION
# =============================================================================


def generate_set_id(name: str) -> str:
    """Slug for a set name ("Derecho Penal I" -> "derecho-penal-i")."""
    normalized = unicodedata.normalize("NFKD", name)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug or "conjunto"


def import_question_set(
    file_path: Path,
    set_id: str | None = None,
    name: str | None = None,
    sets_dir: Path | None = None,
) -> ImportResult:
    """Import a spreadsheet and store it as an uploaded set.

    Re-importing with the same set id replaces the questions and keeps
    existing progress.

    Args:
        file_path: Path to a .xlsx or .csv file
        set_id: Set identifier (slug of the file name if not provided)
        name: Display name (file name without extension if not provided)
        sets_dir: Directory of built-in sets (to reject their ids)

    Raises:
        QuestionImportError: If the file cannot be read or stored
        BuiltinSetError: If set_id belongs to a bundled set
    """
    file_path = Path(file_path)
    questions = import_questions(file_path)

    name = name or file_path.stem
    set_id = set_id or generate_set_id(file_path.stem)

    stored = question_sets_repository.save_question_set(
        set_id, name, questions, sets_dir=sets_dir
    )
    if stored is None:
        raise SaveFailedError(set_id)

    logger.info("import_question_set.success", set_id=set_id, questions=len(questions))

    return ImportResult(
        set_id=set_id,
        name=name,
        question_count=len(questions),
        message=f"Conjunto importado: {set_id} ({len(questions)} preguntas)",
    )
