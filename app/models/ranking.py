"""
Ranking Models - Procurement Rating Service
app/models/ranking.py

Response shapes for the per-procurement bidder ranking.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class CriterionScore(BaseModel):
    id: str
    name: str
    weight: float
    raw_score: float = Field(..., ge=0, le=10)
    weighted_score: float


class RankedSubmission(BaseModel):
    submission_id: str
    rank: Optional[int] = None
    overall_score: float
    weighted_total: float
    qualified: bool
    disqualification_reason: Optional[str] = None
    criteria: List[CriterionScore]


class ProcurementRanking(BaseModel):
    procurement_id: str
    qualified: List[RankedSubmission] = Field(default_factory=list)
    disqualified: List[RankedSubmission] = Field(default_factory=list)
    skipped: int = 0
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
