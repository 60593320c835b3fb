"""
Ranking Router - Procurement Rating Service
app/routers/rankings.py

Weighted bidder ranking for one procurement, cached in Redis.
"""

from fastapi import APIRouter, Depends

from app.config import settings
from app.core.dependencies import get_submission_repository
from app.models.ranking import ProcurementRanking
from app.repositories.submission_repository import SubmissionRepository
from app.scoring.ranking import get_procurement_ranking

router = APIRouter(prefix=settings.API_V1_PREFIX, tags=["Rankings"])


@router.get(
    "/procurements/{procurement_id}/rankings",
    response_model=ProcurementRanking,
    summary="Rank bidders of a procurement",
    description=(
        "Qualified bidders ordered by overall score, plus disqualified bidders "
        "with the reason. Only completed ratings are considered."
    ),
)
async def get_rankings(
    procurement_id: str,
    repo: SubmissionRepository = Depends(get_submission_repository),
) -> ProcurementRanking:
    return get_procurement_ranking(repo, procurement_id)
