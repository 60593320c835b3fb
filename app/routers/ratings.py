"""
Rating Router - Procurement Rating Service
app/routers/ratings.py

Trigger endpoint for rating one submission.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.dependencies import get_rating_orchestrator
from app.services.rating_orchestrator import RatingOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.API_V1_PREFIX, tags=["Ratings"])

INVALID_BODY = 'Invalid request body. Expecting { "submissionId": "..." }'


@router.post(
    "/rate-submission",
    summary="Rate a submission",
    description=(
        "Rates the core, experience, team and price sections of one submission "
        "concurrently, persists the result and returns it. 200 when completed, "
        "500 when any section or the final save failed."
    ),
    responses={
        200: {"description": "Rating completed"},
        400: {"description": "Missing or malformed submission id, or missing procurement id"},
        404: {"description": "Submission not found"},
        409: {"description": "A rating run for this submission is already in progress"},
        500: {"description": "Rating finished with errors (rating data still returned)"},
    },
)
async def rate_submission(
    request: Request,
    orchestrator: RatingOrchestrator = Depends(get_rating_orchestrator),
) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning(f"Rejected rate-submission request body: {e}")
        return JSONResponse(status_code=400, content={"error": INVALID_BODY})

    submission_id = body.get("submissionId") if isinstance(body, dict) else None
    logger.info(f"Received request to rate submission: {submission_id}")

    outcome = await orchestrator.rate_submission(submission_id)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body())
