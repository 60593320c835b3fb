"""
Rating Orchestrator - Procurement Rating Service
app/services/rating_orchestrator.py

Runs one rating of one submission:

  1. validate the identifier and take the single-flight lock
  2. fetch the submission, check its procurement id
  3. mark it processing (best effort)
  4. rate core / experience / team / price concurrently, settling all four
  5. substitute placeholders for failed sections, collect their errors
  6. overall = unweighted mean of the four section scores
  7. persist rating_data and final status in one update
  8. return the rating with an HTTP-style status code

Status lifecycle: pending -> processing -> completed | error. A new run may
start again from either terminal state.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import structlog

from app.config import settings
from app.core.exceptions import (
    EntityNotFoundException,
    PersistenceException,
    RatingInProgressException,
    RatingValidationException,
    RepositoryException,
)
from app.models.enumerations import RatingStatus, Section
from app.models.rating import (
    FAILED_SECTION_REASONING,
    PriceRating,
    RatingData,
    SectionRating,
)
from app.models.submission import SubmissionRecord
from app.scoring.core_rater import rate_core_section
from app.scoring.experience_rater import rate_experience_section
from app.scoring.price_rater import rate_price_section
from app.scoring.ranking import invalidate_ranking
from app.scoring.settle import settle_all
from app.scoring.team_rater import rate_team_section
from app.scoring.utils import mean
from app.services.cache import get_cache
from app.services.document_rater import DocumentRater, HolisticRater
from app.services.rating_lock import RatingLock
from app.services.redis_cache import RedisCache
from app.services.s3_storage import DocumentStorage

logger = structlog.get_logger(__name__)

_SUBMISSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_\-]{1,255}")

MISSING_SUBMISSION_ID = "Submission ID is required in the request body"
MISSING_PROCUREMENT_ID = "Submission is missing procurement_id"
UNEXPECTED_ERROR = "An unexpected error occurred during rating"


class SubmissionStore(Protocol):
    """Blocking store interface; calls are moved off the event loop."""

    def fetch_submission_by_id(self, submission_id: str) -> SubmissionRecord: ...

    def update_submission_status(
        self, submission_id: str, status: RatingStatus, error_message: Optional[str] = None
    ) -> None: ...

    def update_submission_rating(
        self, submission_id: str, rating_data: Dict[str, Any], status: RatingStatus
    ) -> None: ...

    def list_submissions_by_procurement(self, procurement_id: str) -> Sequence[SubmissionRecord]: ...


@dataclass
class RatingOutcome:
    """What the trigger interface reports back for one run."""
    rating_data: Optional[RatingData]
    success: bool
    status_code: int
    message: Optional[str] = None

    def body(self) -> Dict[str, Any]:
        if self.rating_data is not None:
            return self.rating_data.to_record()
        return {"error": self.message}


def validate_submission_id(submission_id: Any) -> str:
    if not submission_id or not isinstance(submission_id, str):
        raise RatingValidationException(MISSING_SUBMISSION_ID)
    if not _SUBMISSION_ID_PATTERN.fullmatch(submission_id):
        raise RatingValidationException(f"Malformed submission ID: {submission_id[:64]!r}")
    return submission_id


def overall_score(core: SectionRating, experience: SectionRating, team: SectionRating, price: PriceRating) -> float:
    return mean([core.overall_score, experience.overall_score, team.overall_score, price.score])


class RatingOrchestrator:
    """Coordinates the four section raters for one submission at a time."""

    def __init__(
        self,
        store: SubmissionStore,
        storage: Optional[DocumentStorage] = None,
        document_rater: Optional[DocumentRater] = None,
        holistic_rater: Optional[HolisticRater] = None,
        lock: Optional[RatingLock] = None,
        section_timeout: Optional[float] = None,
        cache_getter: Callable[[], Optional[RedisCache]] = get_cache,
    ):
        self.store = store
        self.storage = storage
        self.document_rater = document_rater
        self.holistic_rater = holistic_rater
        self.lock = lock or RatingLock(cache_getter=cache_getter)
        self.section_timeout = section_timeout or settings.SECTION_TIMEOUT_SECONDS
        self.cache_getter = cache_getter

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    async def _set_status(
        self, submission_id: str, status: RatingStatus, error_message: Optional[str] = None
    ) -> bool:
        """Best-effort status transition; failures are logged only."""
        try:
            await asyncio.to_thread(
                self.store.update_submission_status, submission_id, status, error_message
            )
            return True
        except RepositoryException as e:
            logger.warning(
                "status_update_failed",
                submission_id=submission_id,
                status=RatingStatus(status).value,
                error=str(e),
            )
            return False

    async def _persist(self, submission_id: str, rating: RatingData) -> None:
        try:
            await asyncio.to_thread(
                self.store.update_submission_rating,
                submission_id,
                rating.to_record(),
                rating.status,
            )
        except RepositoryException as e:
            raise PersistenceException(str(e)) from e

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def rate_sections(self, record: SubmissionRecord) -> RatingData:
        """Settle all four section raters and fold them into RatingData."""
        procurement_id = record.procurement_id
        names = [Section.CORE, Section.EXPERIENCE, Section.TEAM, Section.PRICE]
        outcomes = await settle_all(
            [
                rate_core_section(
                    record.core_data, procurement_id,
                    storage=self.storage, rater=self.document_rater,
                ),
                rate_experience_section(
                    record.experience_data, procurement_id,
                    storage=self.storage, rater=self.document_rater,
                ),
                rate_team_section(
                    record.team_data, procurement_id,
                    storage=self.storage,
                    document_rater=self.document_rater,
                    holistic_rater=self.holistic_rater,
                ),
                rate_price_section(
                    self.store, record.submission_id, procurement_id, record.proposed_price,
                ),
            ],
            timeout=self.section_timeout,
        )

        results: Dict[Section, Any] = {}
        errors: List[str] = []
        for name, outcome in zip(names, outcomes):
            if outcome.ok:
                results[name] = outcome.value
                score = outcome.value.score if name == Section.PRICE else outcome.value.overall_score
                logger.info("section_settled", section=name.value, ok=True, score=score)
                continue

            logger.error("section_settled", section=name.value, ok=False, error=outcome.reason)
            errors.append(f"{name.value}: {outcome.reason}")
            if name == Section.PRICE:
                results[name] = PriceRating(score=0, reasoning=f"Price rating failed: {outcome.reason}")
            else:
                results[name] = SectionRating.empty(FAILED_SECTION_REASONING)

        core = results[Section.CORE]
        experience = results[Section.EXPERIENCE]
        team = results[Section.TEAM]
        price = results[Section.PRICE]
        return RatingData(
            status=RatingStatus.ERROR if errors else RatingStatus.COMPLETED,
            error_message=f"Partial rating failure: {'; '.join(errors)}" if errors else None,
            core=core,
            experience=experience,
            team=team,
            price=price,
            overall_score=overall_score(core, experience, team, price),
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def rate_submission(self, submission_id: Any) -> RatingOutcome:
        """Rate one submission. Always returns an outcome, never raises for rating failures."""
        try:
            submission_id = validate_submission_id(submission_id)
        except RatingValidationException as e:
            return RatingOutcome(None, False, e.status_code, str(e))

        try:
            async with self.lock.hold(submission_id):
                with structlog.contextvars.bound_contextvars(submission_id=submission_id):
                    return await self._run(submission_id)
        except RatingInProgressException as e:
            logger.warning("rating_rejected", submission_id=submission_id, reason=str(e))
            return RatingOutcome(None, False, e.status_code, str(e))

    async def _run(self, submission_id: str) -> RatingOutcome:
        try:
            record = await asyncio.to_thread(self.store.fetch_submission_by_id, submission_id)
        except RepositoryException as e:
            detail = "Submission not found" if isinstance(e, EntityNotFoundException) else str(e)
            message = f"Failed to fetch submission data: {detail}"
            logger.error("submission_fetch_failed", error=str(e))
            await self._set_status(submission_id, RatingStatus.ERROR, message)
            return RatingOutcome(None, False, e.status_code, message)

        if not record.procurement_id:
            logger.error("submission_invalid", reason=MISSING_PROCUREMENT_ID)
            await self._set_status(submission_id, RatingStatus.ERROR, MISSING_PROCUREMENT_ID)
            return RatingOutcome(None, False, RatingValidationException.status_code, MISSING_PROCUREMENT_ID)

        logger.info("rating_started", procurement_id=record.procurement_id)
        await self._set_status(submission_id, RatingStatus.PROCESSING)

        try:
            rating = await self.rate_sections(record)
        except Exception as e:
            logger.exception("rating_crashed", error=str(e))
            await self._set_status(submission_id, RatingStatus.ERROR, f"Unhandled error: {e}")
            return RatingOutcome(None, False, 500, UNEXPECTED_ERROR)

        try:
            await self._persist(submission_id, rating)
            logger.info("rating_persisted", status=rating.status.value)
            await asyncio.to_thread(invalidate_ranking, record.procurement_id, self.cache_getter)
        except PersistenceException as e:
            logger.error("rating_persist_failed", error=str(e))
            await self._set_status(
                submission_id, RatingStatus.ERROR, f"Failed to save final rating results: {e}"
            )
            rating.status = RatingStatus.ERROR
            rating.error_message = (
                f"{rating.error_message}; Failed to save results: {e}"
                if rating.error_message
                else f"Failed to save rating results: {e}"
            )

        success = rating.status == RatingStatus.COMPLETED
        logger.info(
            "rating_finished",
            status=rating.status.value,
            overall_score=rating.overall_score,
            error_message=rating.error_message,
        )
        return RatingOutcome(
            rating_data=rating,
            success=success,
            status_code=200 if success else 500,
            message=rating.error_message,
        )

