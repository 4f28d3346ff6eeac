"""Question set endpoints."""

import structlog
from fastapi import APIRouter, HTTPException, Request, Response, status

from estudio.core.questions import BuiltinSetError, QuestionSet
from estudio.db import question_sets_repository
from estudio.web.schemas import (
    QuestionResponse,
    QuestionSetDetail,
    QuestionSetListResponse,
    QuestionSetSummaryResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/sets", tags=["sets"])


def load_set_or_404(request: Request, set_id: str) -> QuestionSet:
    """Load a question set, or raise 404."""
    question_set = question_sets_repository.load_question_set(
        set_id, sets_dir=request.app.state.sets_dir
    )
    if question_set is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Question set '{set_id}' not found",
        )
    return question_set


@router.get("", response_model=QuestionSetListResponse)
async def list_sets(request: Request) -> QuestionSetListResponse:
    """List built-in and uploaded question sets."""
    summaries = question_sets_repository.list_question_sets(request.app.state.sets_dir)

    logger.info("sets_list", count=len(summaries))

    sets = [
        QuestionSetSummaryResponse(
            id=s.set_id,
            name=s.name,
            created_at=s.created_at,
            builtin=s.builtin,
            question_count=s.question_count,
        )
        for s in summaries
    ]
    return QuestionSetListResponse(sets=sets, count=len(sets))


@router.get("/{set_id}", response_model=QuestionSetDetail)
async def get_set(request: Request, set_id: str) -> QuestionSetDetail:
    """Get a question set with its questions."""
    question_set = load_set_or_404(request, set_id)

    return QuestionSetDetail(
        id=question_set.set_id,
        name=question_set.name,
        created_at=question_set.created_at,
        builtin=question_set.builtin,
        sections=question_set.sections(),
        topics=question_set.topics(),
        questions=[QuestionResponse(**q.to_dict()) for q in question_set.questions],
    )


@router.delete("/{set_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_set(request: Request, set_id: str) -> Response:
    """Delete an uploaded set and its progress."""
    load_set_or_404(request, set_id)

    try:
        deleted = question_sets_repository.delete_question_set(
            set_id, sets_dir=request.app.state.sets_dir
        )
    except BuiltinSetError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Could not delete '{set_id}'",
        )

    request.app.state.store.forget(set_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
