"""
Submission Repository - Procurement Rating Service
app/repositories/submission_repository.py

Data access layer for submission records and their rating state.

Table: SUBMISSIONS
    SUBMISSION_ID    VARCHAR PRIMARY KEY
    PROCUREMENT_ID   VARCHAR
    CORE_DATA        VARIANT
    EXPERIENCE_DATA  VARIANT
    TEAM_DATA        VARIANT
    PROPOSED_PRICE   FLOAT
    RATING_STATUS    VARCHAR   (pending | processing | completed | error)
    RATING_DATA      VARIANT
    CREATED_AT       TIMESTAMP_TZ
    UPDATED_AT       TIMESTAMP_TZ
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.config import settings
from app.core.exceptions import EntityNotFoundException
from app.models.enumerations import RatingStatus
from app.models.rating import RatingErrorStatus
from app.models.submission import SubmissionCreate, SubmissionRecord
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_VARIANT_COLUMNS = ("core_data", "experience_data", "team_data", "rating_data")


class SubmissionRepository(BaseRepository):
    """Repository for submission reads and rating-state writes."""

    def __init__(self, table_name: Optional[str] = None):
        self.table_name = table_name or settings.SUBMISSIONS_TABLE

    def _to_record(self, row: Dict[str, Any]) -> SubmissionRecord:
        data = self.row_to_dict(row)
        for column in _VARIANT_COLUMNS:
            if column in data:
                data[column] = self.from_variant(data[column])
        if data.get("created_at") is not None:
            data["created_at"] = self.normalize_timestamp(data["created_at"])
        if data.get("rating_status") is None:
            data["rating_status"] = RatingStatus.PENDING
        return SubmissionRecord(**data)

    def fetch_submission_by_id(self, submission_id: str) -> SubmissionRecord:
        """Fetch the fields needed for rating. Raises EntityNotFoundException."""
        sql = f"""
            SELECT submission_id, procurement_id, core_data, experience_data,
                   team_data, proposed_price, rating_status, rating_data, created_at
            FROM {self.table_name}
            WHERE submission_id = %s
        """
        row = self.execute_query(sql, (submission_id,), fetch_one=True)
        if not row:
            raise EntityNotFoundException("Submission", submission_id)
        return self._to_record(row)

    def update_submission_status(
        self,
        submission_id: str,
        status: RatingStatus,
        error_message: Optional[str] = None,
    ) -> None:
        """Set rating_status; an error status also records a minimal rating_data."""
        update_data: Dict[str, Any] = {
            "rating_status": RatingStatus(status).value,
            "updated_at": datetime.now(timezone.utc),
        }
        if status == RatingStatus.ERROR:
            error_status = RatingErrorStatus(
                error_message=error_message or "Unknown error during rating"
            )
            update_data["rating_data"] = self.to_variant(
                error_status.model_dump(mode="json", by_alias=True)
            )
        sql, params = self.build_update_query(
            self.table_name, update_data, "SUBMISSION_ID", submission_id,
            variant_columns=("rating_data",),
        )
        self.execute_query(sql, tuple(params), commit=True)

    def update_submission_rating(
        self,
        submission_id: str,
        rating_data: Dict[str, Any],
        status: RatingStatus,
    ) -> None:
        """Write the full rating result and final status in one UPDATE."""
        update_data = {
            "rating_data": self.to_variant(rating_data),
            "rating_status": RatingStatus(status).value,
            "updated_at": datetime.now(timezone.utc),
        }
        sql, params = self.build_update_query(
            self.table_name, update_data, "SUBMISSION_ID", submission_id,
            variant_columns=("rating_data",),
        )
        affected = self.execute_query(sql, tuple(params), commit=True)
        if affected == 0:
            raise EntityNotFoundException("Submission", submission_id)

    def list_submissions_by_procurement(self, procurement_id: str) -> List[SubmissionRecord]:
        """All submissions for one procurement (used for price comparison and ranking)."""
        sql = f"""
            SELECT submission_id, procurement_id, proposed_price, rating_status,
                   rating_data, created_at
            FROM {self.table_name}
            WHERE procurement_id = %s
        """
        rows = self.execute_query(sql, (procurement_id,), fetch_all=True) or []
        return [self._to_record(r) for r in rows]

    def list_submissions(self, status: Optional[RatingStatus] = None) -> List[SubmissionRecord]:
        """Submissions newest first, optionally filtered by rating status."""
        sql = f"""
            SELECT submission_id, procurement_id, rating_status, rating_data, created_at
            FROM {self.table_name}
        """
        params: tuple = ()
        if status is not None:
            sql += " WHERE rating_status = %s"
            params = (RatingStatus(status).value,)
        sql += " ORDER BY created_at DESC"
        rows = self.execute_query(sql, params, fetch_all=True) or []
        return [self._to_record(r) for r in rows]

    def create_submission(self, submission: SubmissionCreate) -> SubmissionRecord:
        """Insert a new pending submission."""
        now = datetime.now(timezone.utc)
        # VARIANT values cannot be bound inside VALUES, hence INSERT ... SELECT
        sql = f"""
            INSERT INTO {self.table_name} (
                submission_id, procurement_id, core_data, experience_data,
                team_data, proposed_price, rating_status, created_at, updated_at
            )
            SELECT %s, %s, PARSE_JSON(%s), PARSE_JSON(%s), PARSE_JSON(%s), %s, %s, %s, %s
        """
        params = (
            submission.submission_id,
            submission.procurement_id,
            self.to_variant(submission.core_data),
            self.to_variant(submission.experience_data),
            self.to_variant(submission.team_data),
            submission.proposed_price,
            RatingStatus.PENDING.value,
            now,
            now,
        )
        self.execute_query(sql, params, commit=True)
        logger.info(f"Recorded submission {submission.submission_id} for procurement {submission.procurement_id}")
        return SubmissionRecord(
            **submission.model_dump(),
            rating_status=RatingStatus.PENDING,
            created_at=now,
        )
