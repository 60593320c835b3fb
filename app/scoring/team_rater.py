"""
Team Section Rater
app/scoring/team_rater.py

Two-stage rating per key team member, all members concurrently:
  1. cv / diplomas / credentials rated individually by the document rater
  2. a free-text holistic rating of the member from their declared
     attributes plus the file ratings

Team score = mean of members whose holistic rating succeeded (unrounded).
Members whose holistic call failed stay in the details with rating 0.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional

import structlog

from app.config import settings
from app.core.exceptions import DocumentDownloadException, DocumentReferenceException, RaterException
from app.models.rating import RatingDetail, SectionRating
from app.models.submission import TEAM_FILE_FIELDS, TEAM_SECTION_FIELDS, TeamMember
from app.scoring.document_section import fetch_document
from app.scoring.prompts import member_overall_prompt, member_summary, team_file_prompt
from app.scoring.settle import settle_all
from app.scoring.utils import mean
from app.services.document_rater import (
    DocumentRater,
    HolisticRater,
    get_document_rater,
    get_holistic_rater,
    parse_holistic_rating,
)
from app.services.s3_storage import DocumentStorage, get_document_storage

logger = structlog.get_logger(__name__)

INVALID_TEAM_DATA = "Invalid or missing team member data."
MISSING_FILE = "File URL missing or invalid."


@dataclass
class MemberResult:
    """Holistic outcome for one role plus its file-level details."""
    role: str
    rating: float
    reasoning: str
    succeeded: bool
    files: List[RatingDetail] = field(default_factory=list)

    def details(self) -> List[RatingDetail]:
        overall = RatingDetail(
            document_name=f"member.{self.role}.overall",
            rating=self.rating,
            reasoning=self.reasoning,
        )
        return [overall] + self.files


def team_reasoning(evaluated: int, score: float) -> str:
    return (
        f"Team rating based on {evaluated} evaluated members. "
        f"Average Score: {score:.1f}/10. See details for individual member evaluations."
    )


class TeamSectionRater:
    """Rates every member listed under ``members`` of a team payload."""

    def __init__(
        self,
        storage: DocumentStorage,
        document_rater: DocumentRater,
        holistic_rater: HolisticRater,
        timeout: Optional[float] = None,
    ):
        self.storage = storage
        self.document_rater = document_rater
        self.holistic_rater = holistic_rater
        self.timeout = timeout if timeout is not None else settings.RATER_TIMEOUT_SECONDS

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def _rate_file(
        self, role: str, member: TeamMember, file_field: str, procurement_id: str
    ) -> RatingDetail:
        name = f"{role}.{file_field}"
        url = member.file_url(file_field)
        if url is None:
            return RatingDetail(document_name=name, rating=0, reasoning=MISSING_FILE)

        try:
            document = await fetch_document(self.storage, url, procurement_id)
        except (DocumentReferenceException, DocumentDownloadException) as e:
            logger.warning("team_file_download_failed", role=role, field=file_field, error=str(e))
            return RatingDetail(
                document_name=name,
                document_url=url,
                rating=0,
                reasoning=f"File download/processing failed: {e}",
            )

        prompt = team_file_prompt(file_field, role, member.profession)
        try:
            result = await self.document_rater.rate(prompt, document.content, document.media_type)
        except RaterException as e:
            logger.warning("team_file_rating_failed", role=role, field=file_field, error=str(e))
            return RatingDetail(
                document_name=name,
                document_url=url,
                rating=0,
                reasoning=f"AI rating failed: {e}",
            )

        logger.info("team_file_rated", role=role, field=file_field, rating=result.rating)
        return RatingDetail(
            document_name=name,
            document_url=url,
            rating=result.rating,
            reasoning=result.reasoning,
        )

    async def _rate_files(
        self, role: str, member: TeamMember, procurement_id: str
    ) -> List[RatingDetail]:
        labels = [f"{role}.{f}" for f in TEAM_FILE_FIELDS]
        outcomes = await settle_all(
            [self._rate_file(role, member, f, procurement_id) for f in TEAM_FILE_FIELDS],
            timeout=self.timeout,
            labels=labels,
        )
        files = []
        for label, outcome in zip(labels, outcomes):
            if outcome.ok:
                files.append(outcome.value)
            else:
                logger.warning("team_file_rating_failed", file=label, error=outcome.reason)
                files.append(RatingDetail(
                    document_name=label,
                    rating=0,
                    reasoning=f"File rating failed: {outcome.reason}",
                ))
        return files

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def rate_member(self, role: str, member: TeamMember, procurement_id: str) -> MemberResult:
        files = await self._rate_files(role, member, procurement_id)
        summary = member_summary(
            role,
            member.full_name,
            member.profession,
            member.years_experience,
            [(f, d.rating, d.reasoning) for f, d in zip(TEAM_FILE_FIELDS, files)],
        )

        try:
            text = await asyncio.wait_for(
                self.holistic_rater.rate_text(member_overall_prompt(role, summary)),
                self.timeout,
            )
        except asyncio.TimeoutError:
            reason = f"timed out after {self.timeout:g}s"
            logger.warning("member_rating_failed", role=role, error=reason)
            return MemberResult(role, 0, f"Overall rating failed: {reason}", False, files)
        except Exception as e:
            # file details are kept whatever the holistic call raised
            logger.warning("member_rating_failed", role=role, error=str(e))
            return MemberResult(role, 0, f"Overall rating failed: {e}", False, files)

        rating, reasoning, parsed = parse_holistic_rating(text)
        if not parsed:
            logger.warning("member_rating_unparsed", role=role)
        logger.info("member_rated", role=role, rating=rating)
        return MemberResult(role, rating, reasoning, True, files)

    async def rate(self, team_data: Any, procurement_id: str) -> SectionRating:
        members = team_data.get("members") if isinstance(team_data, dict) else None
        if not isinstance(members, dict):
            logger.warning("team_data_invalid", procurement_id=procurement_id)
            return SectionRating.empty(INVALID_TEAM_DATA)

        for key in team_data:
            if key not in TEAM_SECTION_FIELDS:
                logger.warning("field_skipped", section="team", field=key, reason="field not declared for team section")

        roles = []
        units = []
        for role, raw in members.items():
            if not isinstance(raw, dict):
                logger.warning("member_skipped", role=role, reason="member data is not an object")
                continue
            roles.append(role)
            units.append(self.rate_member(role, TeamMember.model_validate(raw), procurement_id))

        outcomes = await settle_all(units, labels=roles)
        results: List[MemberResult] = []
        for role, outcome in zip(roles, outcomes):
            if outcome.ok:
                results.append(outcome.value)
            else:
                logger.warning("member_rating_failed", role=role, error=outcome.reason)
                results.append(MemberResult(role, 0, f"Overall rating failed: {outcome.reason}", False))

        ratings = [r.rating for r in results if r.succeeded]
        score = mean(ratings)
        logger.info(
            "section_rated",
            section="team",
            procurement_id=procurement_id,
            members=len(results),
            succeeded=len(ratings),
            score=score,
        )
        return SectionRating(
            overall_score=score,
            details=[d for r in results for d in r.details()],
            overall_reasoning=team_reasoning(len(ratings), score),
        )


async def rate_team_section(
    team_data: Any,
    procurement_id: str,
    storage: Optional[DocumentStorage] = None,
    document_rater: Optional[DocumentRater] = None,
    holistic_rater: Optional[HolisticRater] = None,
) -> SectionRating:
    rater = TeamSectionRater(
        storage=storage or get_document_storage(),
        document_rater=document_rater or get_document_rater(),
        holistic_rater=holistic_rater or get_holistic_rater(),
    )
    return await rater.rate(team_data, procurement_id)
