"""
Core Section Rater
app/scoring/core_rater.py

Compliance documents (licence, certificates, tax clearance). Failed documents
count as 0 in the mean unless CORE_COUNT_FAILED_DOCUMENTS is off.
"""

from typing import Any, Optional

from app.config import settings
from app.models.rating import SectionRating
from app.models.submission import CORE_SCHEMA, SectionSchema
from app.scoring.document_section import DocumentSectionRater
from app.scoring.prompts import core_document_prompt
from app.services.document_rater import DocumentRater, get_document_rater
from app.services.s3_storage import DocumentStorage, get_document_storage

NO_CORE_DATA = "No core data provided."


def _core_reasoning(counted: int, succeeded: int, total: int) -> str:
    return f"Overall core score based on average of {counted} rated documents."


async def rate_core_section(
    core_data: Any,
    procurement_id: str,
    storage: Optional[DocumentStorage] = None,
    rater: Optional[DocumentRater] = None,
    schema: SectionSchema = CORE_SCHEMA,
    count_failed: Optional[bool] = None,
) -> SectionRating:
    if not isinstance(core_data, dict):
        return SectionRating.empty(NO_CORE_DATA)

    section_rater = DocumentSectionRater(
        schema=schema,
        prompt_builder=core_document_prompt,
        count_failed=(
            settings.CORE_COUNT_FAILED_DOCUMENTS if count_failed is None else count_failed
        ),
        storage=storage or get_document_storage(),
        rater=rater or get_document_rater(),
    )
    return await section_rater.rate(core_data, procurement_id, _core_reasoning)
