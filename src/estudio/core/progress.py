"""Per-question progress record and its update rule.

A ProgressRecord accumulates confidence submissions (1-5) into a running
average and carries an independent bookmark flag. Records are created
lazily with zero values and updated through apply_update(), which never
mutates its input.

Invariant: confianza_count == veces_mostrada, and confianza_promedio is
the mean of every submission rounded to 2 decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 5

CONFIDENCE_LABELS: dict[int, str] = {
    1: "No sabía nada",
    2: "Sabía muy poco",
    3: "Algo sabía",
    4: "Sabía bien",
    5: "Lo dominaba",
}


class InvalidConfidenceError(ValueError):
    """Raised when a confidence level is outside 1-5."""

    def __init__(self, level: Any):
        self.level = level
        super().__init__(
            f"Confianza inválida: {level!r} (debe estar entre "
            f"{MIN_CONFIDENCE} y {MAX_CONFIDENCE})"
        )


def validate_confidence(level: Any) -> int:
    """Check a confidence level before it reaches the engine.

    Returns:
        The level as int

    Raises:
        InvalidConfidenceError: If not an integer in 1-5
    """
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidConfidenceError(level)
    if not MIN_CONFIDENCE <= level <= MAX_CONFIDENCE:
        raise InvalidConfidenceError(level)
    return level


@dataclass
class ProgressUpdate:
    """Fields to apply to a progress record. None means 'not present'."""

    confidence: int | None = None
    marked: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.confidence is not None:
            result["confidence"] = self.confidence
        if self.marked is not None:
            result["marked"] = self.marked
        return result


@dataclass
class ProgressRecord:
    """Progress for one question of one set."""

    veces_mostrada: int = 0
    ultima_confianza: int | None = None
    confianza_sum: int = 0
    confianza_count: int = 0
    confianza_promedio: float | None = None
    ultima_fecha_vista: str | None = None
    marcada_para_repaso: bool = False

    @property
    def has_confidence(self) -> bool:
        """Whether at least one confidence level was submitted."""
        return self.ultima_confianza is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "veces_mostrada": self.veces_mostrada,
            "ultima_confianza": self.ultima_confianza,
            "confianza_sum": self.confianza_sum,
            "confianza_count": self.confianza_count,
            "confianza_promedio": self.confianza_promedio,
            "ultima_fecha_vista": self.ultima_fecha_vista,
            "marcada_para_repaso": self.marcada_para_repaso,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressRecord:
        """Build from a stored row or exported dict. Missing keys get zero values."""
        promedio = data.get("confianza_promedio")
        return cls(
            veces_mostrada=int(data.get("veces_mostrada") or 0),
            ultima_confianza=data.get("ultima_confianza"),
            confianza_sum=int(data.get("confianza_sum") or 0),
            confianza_count=int(data.get("confianza_count") or 0),
            confianza_promedio=float(promedio) if promedio is not None else None,
            ultima_fecha_vista=data.get("ultima_fecha_vista"),
            marcada_para_repaso=bool(data.get("marcada_para_repaso") or False),
        )


def now_iso() -> str:
    """Current UTC time as ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


def apply_update(
    existing: ProgressRecord,
    update: ProgressUpdate,
    now: str | None = None,
) -> ProgressRecord:
    """Apply an update and return the new full record.

    Precondition: update.confidence, when present, is already validated
    (see validate_confidence).

    Args:
        existing: Current record (zero-value record for first update)
        update: Confidence and/or bookmark to apply
        now: Timestamp override (defaults to current UTC time)

    Returns:
        New ProgressRecord; existing is left untouched
    """
    record = replace(existing)

    if update.confidence is not None:
        record.veces_mostrada += 1
        record.confianza_count += 1
        record.confianza_sum += update.confidence
        record.ultima_confianza = update.confidence
        record.confianza_promedio = round(
            record.confianza_sum / record.confianza_count, 2
        )

    if update.marked is not None:
        record.marcada_para_repaso = update.marked

    record.ultima_fecha_vista = now or now_iso()
    return record
