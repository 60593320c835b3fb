"""
Rating Models - Procurement Rating Service
app/models/rating.py

Shape of the persisted ``rating_data`` record. Field aliases keep the stored
JSON in camelCase so records written by earlier versions stay readable.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.enumerations import RatingStatus

RATING_VERSION = "1.0"
FAILED_SECTION_REASONING = "Rating failed or incomplete"


class RatingDetail(BaseModel):
    """One rated document or sub-item inside a section."""

    document_name: Optional[str] = Field(default=None, alias="documentName")
    document_url: Optional[str] = Field(default=None, alias="documentUrl")
    rating: float = Field(..., ge=0, le=10)
    reasoning: str
    criteria: Optional[str] = None

    class Config:
        populate_by_name = True


class SectionRating(BaseModel):
    """Aggregated rating of the core, experience or team section."""

    overall_score: float = Field(..., ge=0, le=10, alias="overallScore")
    details: List[RatingDetail] = Field(default_factory=list)
    overall_reasoning: str = Field(default="", alias="overallReasoning")

    class Config:
        populate_by_name = True

    @classmethod
    def empty(cls, reasoning: str) -> "SectionRating":
        return cls(overall_score=0, details=[], overall_reasoning=reasoning)


class PriceRating(BaseModel):
    """Deterministic lowest-price comparison result."""

    score: float = Field(..., ge=0, le=10)
    reasoning: str


class RatingData(BaseModel):
    """Aggregate rating persisted on the submission record."""

    rating_version: str = Field(default=RATING_VERSION, alias="ratingVersion")
    rated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="ratedAt",
    )
    status: RatingStatus
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    core: SectionRating
    experience: SectionRating
    team: SectionRating
    price: PriceRating
    overall_score: float = Field(..., ge=0, le=10, alias="overallScore")

    class Config:
        populate_by_name = True

    def to_record(self) -> dict:
        """JSON-ready dict in the stored camelCase layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RatingErrorStatus(BaseModel):
    """Minimal ``rating_data`` written when a run fails before rating."""

    status: RatingStatus = RatingStatus.ERROR
    error_message: str = Field(..., alias="errorMessage")

    class Config:
        populate_by_name = True
