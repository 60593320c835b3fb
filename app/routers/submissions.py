"""
Submission Router - Procurement Rating Service
app/routers/submissions.py

Record, list and inspect bidder submissions.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.config import settings
from app.core.dependencies import get_submission_repository
from app.models.enumerations import RatingStatus
from app.models.submission import SubmissionCreate, SubmissionRecord, SubmissionSummary
from app.repositories.submission_repository import SubmissionRepository
from app.scoring.ranking import invalidate_ranking

router = APIRouter(prefix=settings.API_V1_PREFIX, tags=["Submissions"])



#  Validation Error Messages


FIELD_MESSAGES = {
    "submission_id": {
        "missing": "Submission ID is required",
        "string_too_short": "Submission ID cannot be empty",
        "string_too_long": "Submission ID must not exceed 255 characters",
        "string_pattern_mismatch": "Submission ID may only contain letters, digits, '-' and '_'",
    },
    "procurement_id": {
        "missing": "Procurement ID is required",
        "string_too_short": "Procurement ID cannot be empty",
    },
    "proposed_price": {
        "greater_than_equal": "Proposed price cannot be negative",
        "float_type": "Proposed price must be a number",
        "float_parsing": "Proposed price must be a valid number",
    },
}

DEFAULT_MESSAGES = {
    "missing": "Field '{field}' is required",
    "string_too_short": "Field '{field}' is too short",
    "string_too_long": "Field '{field}' is too long",
    "string_pattern_mismatch": "Field '{field}' has invalid format",
    "string_type": "Field '{field}' must be a string",
    "dict_type": "Field '{field}' must be an object",
    "enum": "Field '{field}' has an unsupported value",
    "json_invalid": "Malformed JSON request body",
}


def get_validation_message(field: str, error_type: str) -> str:
    if field in FIELD_MESSAGES:
        for key in FIELD_MESSAGES[field]:
            if key in error_type:
                return FIELD_MESSAGES[field][key]
    for key, template in DEFAULT_MESSAGES.items():
        if key in error_type:
            return template.format(field=field)
    return f"Invalid value for field '{field}'"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error_code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": None,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
    err = errors[0]
    error_type = err.get("type", "")
    loc = err.get("loc", [])
    if "json_invalid" in error_type:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error_code": "INVALID_REQUEST",
                "message": "Malformed JSON request body",
                "details": None,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
    field = ".".join(str(l) for l in loc if l not in ("body", "query", "path"))
    message = get_validation_message(field, error_type)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "VALIDATION_ERROR",
            "message": message,
            "details": {"field": field, "type": error_type} if field else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )



#  Schemas


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))



#  Routes


@router.get(
    "/submissions",
    response_model=List[SubmissionSummary],
    summary="List submissions",
    description="Submissions newest first, optionally filtered by rating status.",
)
async def list_submissions(
    rating_status: Optional[RatingStatus] = Query(None, alias="status"),
    repo: SubmissionRepository = Depends(get_submission_repository),
) -> List[SubmissionSummary]:
    records = repo.list_submissions(status=rating_status)
    return [
        SubmissionSummary(
            submission_id=r.submission_id,
            procurement_id=r.procurement_id,
            rating_status=r.rating_status,
            rating_data=r.rating_data,
        )
        for r in records
    ]


@router.post(
    "/submissions",
    response_model=SubmissionRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Record a submission",
    description="Stores a new application packet with rating status 'pending'.",
    responses={409: {"model": ErrorResponse, "description": "Submission ID already exists"}},
)
async def create_submission(
    submission: SubmissionCreate,
    repo: SubmissionRepository = Depends(get_submission_repository),
) -> SubmissionRecord:
    record = repo.create_submission(submission)
    invalidate_ranking(submission.procurement_id)
    return record


@router.get(
    "/submissions/{submission_id}",
    response_model=SubmissionRecord,
    summary="Get a submission",
    responses={404: {"model": ErrorResponse, "description": "Submission not found"}},
)
async def get_submission(
    submission_id: str,
    repo: SubmissionRepository = Depends(get_submission_repository),
) -> SubmissionRecord:
    return repo.fetch_submission_by_id(submission_id)
