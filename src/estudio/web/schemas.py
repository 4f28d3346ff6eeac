"""Pydantic schemas for the Web API.

Serialization models for question sets, progress and statistics.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# QUESTION SET SCHEMAS
# =============================================================================


class QuestionResponse(BaseModel):
    """A single question."""

    numero: int
    seccion: str = ""
    tema: str = ""
    pregunta: str = ""
    respuesta_super_corta: str = ""
    respuesta_corta: str = ""
    respuesta_normal: str = ""


class QuestionSetSummaryResponse(BaseModel):
    """Question set listing entry."""

    id: str
    name: str
    created_at: str
    builtin: bool = False
    question_count: int = 0


class QuestionSetListResponse(BaseModel):
    """Response for list of question sets."""

    sets: list[QuestionSetSummaryResponse]
    count: int


class QuestionSetDetail(BaseModel):
    """Question set with its questions and filter options."""

    id: str
    name: str
    created_at: str
    builtin: bool = False
    sections: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    questions: list[QuestionResponse]


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class ProgressUpdateRequest(BaseModel):
    """Request body for updating one question's progress."""

    confidence: int | None = Field(default=None, ge=1, le=5)
    marked: bool | None = None


class ProgressRecordResponse(BaseModel):
    """Progress of a single question."""

    veces_mostrada: int = 0
    ultima_confianza: int | None = None
    confianza_sum: int = 0
    confianza_count: int = 0
    confianza_promedio: float | None = None
    ultima_fecha_vista: str | None = None
    marcada_para_repaso: bool = False


class ProgressResponse(BaseModel):
    """All progress of a set, keyed by question id."""

    set_id: str
    progress: dict[str, ProgressRecordResponse]
    count: int


class ProgressUpdateResponse(BaseModel):
    """Stored record after an update."""

    set_id: str
    question_id: int
    record: ProgressRecordResponse


class ProgressExport(BaseModel):
    """Progress export document."""

    set_id: str
    name: str
    exported_at: str
    progress: dict[str, ProgressRecordResponse]


# =============================================================================
# STATS SCHEMAS
# =============================================================================


class SectionStatsResponse(BaseModel):
    """Per-section aggregates."""

    name: str
    total: int
    answered: int
    average_confidence: float
    progress_percent: int


class StatsResponse(BaseModel):
    """Dashboard aggregates of a set."""

    set_id: str
    total: int
    answered: int
    pending: int
    high_confidence: int
    low_confidence: int
    marked_for_review: int
    average_confidence: float
    progress_percent: int
    sections: list[SectionStatsResponse]
