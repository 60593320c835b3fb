"""
Bidder Ranking
app/scoring/ranking.py

Weighted comparison of completed ratings within one procurement.

    weighted_total = Σ criterion_score × weight / 100
    disqualified when any criterion < QUALIFICATION_MIN_CRITERION_SCORE
                  or weighted_total  < QUALIFICATION_MIN_TOTAL_SCORE

Qualified bidders are ordered by the stored composite overallScore
(descending) and numbered from 1; disqualified bidders are listed unranked.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import redis

from app.config import settings
from app.models.enumerations import RatingStatus
from app.models.ranking import CriterionScore, ProcurementRanking, RankedSubmission
from app.models.submission import SubmissionRecord
from app.services.cache import TTL_RANKINGS, get_cache, rankings_key
from app.services.redis_cache import RedisCache

logger = logging.getLogger(__name__)

# (criterion id, display name, rating_data key, score field)
CRITERIA = (
    ("core", "Core Requirements", "core", "overallScore"),
    ("experience", "Experience", "experience", "overallScore"),
    ("team", "Team Qualifications", "team", "overallScore"),
    ("price", "Price", "price", "score"),
)


def build_criteria(
    rating_data: Dict[str, Any], weights: Dict[str, float]
) -> Optional[List[CriterionScore]]:
    """Criterion scores from a stored rating; None if any section is missing."""
    criteria = []
    for criterion_id, name, key, score_field in CRITERIA:
        section = rating_data.get(key)
        if not isinstance(section, dict) or not isinstance(section.get(score_field), (int, float)):
            return None
        raw = float(section[score_field])
        weight = weights[criterion_id]
        criteria.append(CriterionScore(
            id=criterion_id,
            name=name,
            weight=weight,
            raw_score=raw,
            weighted_score=raw * weight / 100,
        ))
    return criteria


def qualification_status(
    criteria: Iterable[CriterionScore],
    weighted_total: float,
    min_criterion: float,
    min_total: float,
) -> Tuple[bool, Optional[str]]:
    for criterion in criteria:
        if criterion.raw_score < min_criterion:
            return False, f"Score too low for {criterion.name}"
    if weighted_total < min_total:
        return False, (
            f"Overall score {weighted_total:.2f} is below minimum threshold of {min_total:g}"
        )
    return True, None


def rank_submissions(
    procurement_id: str,
    records: Iterable[SubmissionRecord],
    weights: Optional[Dict[str, float]] = None,
    min_criterion: Optional[float] = None,
    min_total: Optional[float] = None,
) -> ProcurementRanking:
    weights = weights or settings.criterion_weights
    if min_criterion is None:
        min_criterion = settings.QUALIFICATION_MIN_CRITERION_SCORE
    if min_total is None:
        min_total = settings.QUALIFICATION_MIN_TOTAL_SCORE

    qualified: List[RankedSubmission] = []
    disqualified: List[RankedSubmission] = []
    skipped = 0
    for record in records:
        data = record.rating_data or {}
        if record.rating_status != RatingStatus.COMPLETED:
            continue
        criteria = build_criteria(data, weights)
        if criteria is None:
            skipped += 1
            continue

        weighted_total = sum(c.weighted_score for c in criteria)
        ok, reason = qualification_status(criteria, weighted_total, min_criterion, min_total)
        entry = RankedSubmission(
            submission_id=record.submission_id,
            overall_score=float(data.get("overallScore", 0) or 0),
            weighted_total=weighted_total,
            qualified=ok,
            disqualification_reason=reason,
            criteria=criteria,
        )
        (qualified if ok else disqualified).append(entry)

    qualified.sort(key=lambda e: e.overall_score, reverse=True)
    for position, entry in enumerate(qualified, start=1):
        entry.rank = position

    return ProcurementRanking(
        procurement_id=procurement_id,
        qualified=qualified,
        disqualified=disqualified,
        skipped=skipped,
    )


# =============================================================================
# CACHED ACCESS
# =============================================================================

def get_procurement_ranking(
    repository,
    procurement_id: str,
    cache_getter: Optional[Callable[[], Optional[RedisCache]]] = None,
) -> ProcurementRanking:
    """Ranking for a procurement, served from Redis when cached."""
    cache = (cache_getter or get_cache)()
    key = rankings_key(procurement_id)
    if cache is not None:
        try:
            cached = cache.get(key, ProcurementRanking)
            if cached is not None:
                return cached
        except redis.RedisError as e:
            logger.warning(f"Ranking cache read failed for {procurement_id}: {e}")

    ranking = rank_submissions(
        procurement_id, repository.list_submissions_by_procurement(procurement_id)
    )
    if cache is not None:
        try:
            cache.set(key, ranking, TTL_RANKINGS)
        except redis.RedisError as e:
            logger.warning(f"Ranking cache write failed for {procurement_id}: {e}")
    return ranking


def invalidate_ranking(
    procurement_id: str,
    cache_getter: Optional[Callable[[], Optional[RedisCache]]] = None,
) -> None:
    cache = (cache_getter or get_cache)()
    if cache is None:
        return
    try:
        cache.delete(rankings_key(procurement_id))
    except redis.RedisError as e:
        logger.warning(f"Ranking cache invalidation failed for {procurement_id}: {e}")
