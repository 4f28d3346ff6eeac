"""Question and question set model.

A Question is immutable once imported. A QuestionSet is either built-in
(bundled JSON, read-only) or user-uploaded (stored in SQLite).
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

AnswerLevel = Literal["super_corta", "corta", "normal"]

ANSWER_LEVELS: tuple[AnswerLevel, ...] = ("super_corta", "corta", "normal")

ANSWER_LEVEL_LABELS: dict[str, str] = {
    "super_corta": "Super corta",
    "corta": "Corta",
    "normal": "Normal",
}

QUESTION_FIELDS = (
    "numero",
    "seccion",
    "tema",
    "pregunta",
    "respuesta_super_corta",
    "respuesta_corta",
    "respuesta_normal",
)


class QuestionSetNotFoundError(Exception):
    """Raised when a question set id does not exist."""

    def __init__(self, set_id: str):
        self.set_id = set_id
        super().__init__(f"Conjunto de preguntas no encontrado: '{set_id}'")


class BuiltinSetError(Exception):
    """Raised when trying to modify or delete a built-in question set."""

    def __init__(self, set_id: str):
        self.set_id = set_id
        super().__init__(
            f"El conjunto '{set_id}' viene incluido y no se puede modificar"
        )


@dataclass(frozen=True)
class Question:
    """A single flashcard question."""

    numero: int
    seccion: str = ""
    tema: str = ""
    pregunta: str = ""
    respuesta_super_corta: str = ""
    respuesta_corta: str = ""
    respuesta_normal: str = ""

    def answer(self, level: str = "super_corta") -> str:
        """Get the answer variant for a level (super_corta, corta, normal)."""
        if level == "super_corta":
            return self.respuesta_super_corta
        if level == "corta":
            return self.respuesta_corta
        if level == "normal":
            return self.respuesta_normal
        return ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "numero": self.numero,
            "seccion": self.seccion,
            "tema": self.tema,
            "pregunta": self.pregunta,
            "respuesta_super_corta": self.respuesta_super_corta,
            "respuesta_corta": self.respuesta_corta,
            "respuesta_normal": self.respuesta_normal,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], position: int = 1) -> Question:
        """Build a Question from a normalized dict.

        Args:
            data: Dict with canonical field names
            position: 1-based row position, used when numero is missing
        """
        return cls(
            numero=_coerce_numero(data.get("numero"), position),
            seccion=_as_text(data.get("seccion")),
            tema=_as_text(data.get("tema")),
            pregunta=_as_text(data.get("pregunta")),
            respuesta_super_corta=_as_text(data.get("respuesta_super_corta")),
            respuesta_corta=_as_text(data.get("respuesta_corta")),
            respuesta_normal=_as_text(data.get("respuesta_normal")),
        )


@dataclass
class QuestionSet:
    """Named, ordered collection of questions."""

    set_id: str
    name: str
    questions: list[Question] = field(default_factory=list)
    created_at: str = ""
    builtin: bool = False

    def __len__(self) -> int:
        return len(self.questions)

    def get_question(self, numero: int) -> Question | None:
        """Get question by numero."""
        for question in self.questions:
            if question.numero == numero:
                return question
        return None

    def sections(self) -> list[str]:
        """Sorted unique non-empty sections."""
        return sorted({q.seccion for q in self.questions if q.seccion})

    def topics(self) -> list[str]:
        """Sorted unique non-empty topics."""
        return sorted({q.tema for q in self.questions if q.tema})

    def topics_for_sections(self, selected: Iterable[str]) -> list[str]:
        """Topics that belong to at least one of the selected sections."""
        selected = set(selected)
        return sorted(
            {q.tema for q in self.questions if q.tema and q.seccion in selected}
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.set_id,
            "name": self.name,
            "created_at": self.created_at,
            "builtin": self.builtin,
            "questions": [q.to_dict() for q in self.questions],
        }


def questions_from_rows(rows: Iterable[dict[str, Any]]) -> list[Question]:
    """Convert normalized rows into Questions (numero defaults to row position)."""
    return [Question.from_dict(row, position=i) for i, row in enumerate(rows, 1)]


def _as_text(value: Any) -> str:
    """Cell value as stripped string; None becomes empty."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _coerce_numero(value: Any, position: int) -> int:
    """Parse numero, falling back to the 1-based row position."""
    if value is None or value == "":
        return position
    try:
        numero = int(float(value))
    except (TypeError, ValueError):
        return position
    return numero if numero > 0 else position


# Canonical names for normalized spreadsheet headers
COLUMN_ALIASES: dict[str, str] = {
    "n": "numero",
    "numero": "numero",
    "nro": "numero",
    "num": "numero",
    "seccion": "seccion",
    "tema": "tema",
    "pregunta": "pregunta",
    "respuestasupercorta": "respuesta_super_corta",
    "respuestacorta": "respuesta_corta",
    "respuestanormal": "respuesta_normal",
}


def normalize_column_name(name: Any) -> str:
    """Map a spreadsheet header to its canonical field name.

    Case, accents, whitespace and punctuation are ignored, so "N°",
    "Sección" and "Respuesta super corta" all resolve. Unknown headers
    are returned unchanged.
    """
    text = unicodedata.normalize("NFD", str(name).lower())
    text = "".join(c for c in text if not unicodedata.combining(c))
    key = re.sub(r"[^a-z0-9]", "", text)
    return COLUMN_ALIASES.get(key, str(name))


def normalize_row(row: dict[Any, Any]) -> dict[str, Any]:
    """Rename the keys of a raw row to canonical field names."""
    normalized: dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue
        normalized[normalize_column_name(key)] = value
    return normalized
