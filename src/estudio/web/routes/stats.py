"""Dashboard statistics endpoint."""

from fastapi import APIRouter, Request

from estudio.core.stats import compute_section_stats, compute_stats
from estudio.web.routes.sets import load_set_or_404
from estudio.web.schemas import SectionStatsResponse, StatsResponse

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/{set_id}", response_model=StatsResponse)
async def get_stats(request: Request, set_id: str) -> StatsResponse:
    """Aggregated progress of a set, overall and per section."""
    question_set = load_set_or_404(request, set_id)
    progress = request.app.state.store.load(set_id)

    summary = compute_stats(question_set.questions, progress)
    sections = compute_section_stats(question_set.questions, progress)

    return StatsResponse(
        set_id=set_id,
        **summary.to_dict(),
        sections=[SectionStatsResponse(**s.to_dict()) for s in sections],
    )
