"""Progress endpoints (read, update, reset, export)."""

import structlog
from fastapi import APIRouter, HTTPException, Request, Response, status

from estudio.core.progress import ProgressUpdate, now_iso
from estudio.core.progress_store import ProgressStore
from estudio.web.routes.sets import load_set_or_404
from estudio.web.schemas import (
    ProgressExport,
    ProgressRecordResponse,
    ProgressResponse,
    ProgressUpdateRequest,
    ProgressUpdateResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["progress"])


def _get_store(request: Request) -> ProgressStore:
    return request.app.state.store


def _records(store: ProgressStore, set_id: str) -> dict[str, ProgressRecordResponse]:
    return {
        question_id: ProgressRecordResponse(**record)
        for question_id, record in store.export(set_id).items()
    }


@router.get("/api/progress/{set_id}", response_model=ProgressResponse)
async def get_progress(request: Request, set_id: str) -> ProgressResponse:
    """Get all progress records of a set."""
    load_set_or_404(request, set_id)
    store = _get_store(request)
    store.load(set_id)

    progress = _records(store, set_id)
    return ProgressResponse(set_id=set_id, progress=progress, count=len(progress))


@router.post(
    "/api/progress/{set_id}/{question_id}",
    response_model=ProgressUpdateResponse,
)
async def update_progress(
    request: Request,
    set_id: str,
    question_id: int,
    body: ProgressUpdateRequest,
) -> ProgressUpdateResponse:
    """Submit a confidence level and/or bookmark flag for one question."""
    question_set = load_set_or_404(request, set_id)
    if question_set.get_question(question_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Question {question_id} not found in '{set_id}'",
        )

    stored = _get_store(request).update(
        set_id,
        question_id,
        ProgressUpdate(confidence=body.confidence, marked=body.marked),
    )
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress could not be saved",
        )

    return ProgressUpdateResponse(
        set_id=set_id,
        question_id=question_id,
        record=ProgressRecordResponse(**stored.to_dict()),
    )


@router.delete("/api/progress/{set_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_progress(request: Request, set_id: str) -> Response:
    """Delete all progress of a set."""
    load_set_or_404(request, set_id)

    if not _get_store(request).reset(set_id):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress could not be reset",
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/export/{set_id}", response_model=ProgressExport)
async def export_progress(request: Request, set_id: str) -> ProgressExport:
    """Export progress of a set as a JSON document."""
    question_set = load_set_or_404(request, set_id)
    store = _get_store(request)
    store.load(set_id)

    logger.info("progress_export", set_id=set_id)

    return ProgressExport(
        set_id=set_id,
        name=question_set.name,
        exported_at=now_iso(),
        progress=_records(store, set_id),
    )
