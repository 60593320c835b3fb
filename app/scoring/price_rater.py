"""
Price Section Rater
app/scoring/price_rater.py

Deterministic lowest-price comparison, no AI and no document I/O.

Formula:
    score = clamp(10 * (1 - (P - L) / L), 0, 10)
    P = this submission's proposed price
    L = lowest valid price among all submissions of the procurement

P == L scores 10; P >= 2L scores 0. Never raises: any failure while
querying sibling prices becomes a 0 score with the error in the reasoning.
"""

import asyncio
import math
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

import structlog

from app.models.rating import PriceRating
from app.scoring.utils import clamp

logger = structlog.get_logger(__name__)

INVALID_PRICE = "Current submission has invalid or missing total cost."
ONLY_SUBMISSION = "This is the only submission found for this procurement."
NO_LOWEST_PRICE = "Could not determine a valid positive lowest price for comparison."


class PriceSource(Protocol):
    def list_submissions_by_procurement(self, procurement_id: str) -> Sequence[Any]: ...


def valid_price(value: Any) -> Optional[float]:
    """Return the price as float when it is a finite non-negative number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    price = float(value)
    if math.isnan(price) or math.isinf(price) or price < 0:
        return None
    return price


def price_score(current: float, lowest: float) -> float:
    return clamp(10 * (1 - (current - lowest) / lowest))


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


async def rate_price_section(
    store: PriceSource,
    submission_id: str,
    procurement_id: str,
    proposed_price: Any,
) -> PriceRating:
    current = valid_price(proposed_price)
    if current is None:
        logger.warning("price_invalid", submission_id=submission_id, proposed_price=repr(proposed_price))
        return PriceRating(score=0, reasoning=INVALID_PRICE)

    try:
        submissions = await asyncio.to_thread(store.list_submissions_by_procurement, procurement_id)
    except Exception as e:
        logger.error("price_rating_failed", submission_id=submission_id, error=str(e))
        return PriceRating(score=0, reasoning=f"Failed to calculate price rating: {e}")

    if not any(s.submission_id != submission_id for s in submissions):
        logger.info("price_rated", submission_id=submission_id, score=10, only_submission=True)
        return PriceRating(score=10, reasoning=ONLY_SUBMISSION)

    prices = []
    for s in submissions:
        price = valid_price(s.proposed_price)
        if price is None:
            logger.info("price_skipped", submission_id=s.submission_id, reason="invalid or missing price")
            continue
        prices.append(price)
    # The current submission may not be visible in the listing yet
    if not any(s.submission_id == submission_id for s in submissions):
        prices.append(current)

    lowest = min(prices) if prices else None
    if lowest is None or lowest <= 0:
        logger.info("price_rated", submission_id=submission_id, score=0, lowest=lowest)
        return PriceRating(score=0, reasoning=NO_LOWEST_PRICE)

    score = price_score(current, lowest)
    reasoning = (
        f"Score calculated based on own price ({_fmt(current)}) relative to the lowest "
        f"price ({_fmt(lowest)}) found among {len(prices)} submissions. "
        f"Formula: 10 * (1 - ({_fmt(current)} - {_fmt(lowest)}) / {_fmt(lowest)})"
    )
    logger.info("price_rated", submission_id=submission_id, score=round(score, 2), lowest=lowest)
    return PriceRating(score=score, reasoning=reasoning)
