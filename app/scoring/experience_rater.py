"""
Experience Section Rater
app/scoring/experience_rater.py

Evidence of past projects, judged on accuracy, value threshold (half the
tender price ceiling) and applicability. Only successfully rated documents
enter the mean unless EXPERIENCE_COUNT_FAILED_DOCUMENTS is on.
"""

from functools import partial
from typing import Any, Optional

from app.config import settings
from app.models.rating import SectionRating
from app.models.submission import EXPERIENCE_SCHEMA, SectionSchema
from app.scoring.document_section import DocumentSectionRater
from app.scoring.prompts import experience_document_prompt
from app.services.document_rater import DocumentRater, get_document_rater
from app.services.s3_storage import DocumentStorage, get_document_storage

NO_EXPERIENCE_DATA = "No experience data provided."
MISSING_TENDER_VALUE = "Configuration error: Tender value missing."


def _experience_reasoning(counted: int, succeeded: int, total: int) -> str:
    return (
        f"Overall experience score based on average of {counted} successfully "
        f"rated documents out of {total} total."
    )


async def rate_experience_section(
    experience_data: Any,
    procurement_id: str,
    storage: Optional[DocumentStorage] = None,
    rater: Optional[DocumentRater] = None,
    price_ceiling: Optional[float] = None,
    schema: SectionSchema = EXPERIENCE_SCHEMA,
    count_failed: Optional[bool] = None,
) -> SectionRating:
    ceiling = settings.PRICE_CEILING if price_ceiling is None else price_ceiling
    if isinstance(ceiling, bool) or not isinstance(ceiling, (int, float)) or ceiling < 0:
        return SectionRating.empty(MISSING_TENDER_VALUE)

    if not isinstance(experience_data, dict):
        return SectionRating.empty(NO_EXPERIENCE_DATA)

    section_rater = DocumentSectionRater(
        schema=schema,
        prompt_builder=partial(experience_document_prompt, value_threshold=ceiling * 0.5),
        count_failed=(
            settings.EXPERIENCE_COUNT_FAILED_DOCUMENTS if count_failed is None else count_failed
        ),
        storage=storage or get_document_storage(),
        rater=rater or get_document_rater(),
    )
    return await section_rater.rate(experience_data, procurement_id, _experience_reasoning)
