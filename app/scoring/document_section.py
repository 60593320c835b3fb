"""
Document Section Rating
app/scoring/document_section.py

Shared fan-out/fan-in for sections made of uploaded documents. Each declared
document field becomes one unit (resolve location -> download -> AI rating);
all units are settled together and folded into a SectionRating.

Failed units become zero-rated details prefixed "Rating failed:". Whether those
zeros count toward the section mean is a per-section policy.
"""

from typing import Any, Callable, Dict, List, Optional

import structlog

from app.config import settings
from app.models.rating import RatingDetail, SectionRating
from app.models.submission import DocumentField, InvalidField, SectionSchema
from app.scoring.settle import settle_all
from app.scoring.utils import mean, round_half_up
from app.services.document_rater import DocumentRater
from app.services.s3_storage import DocumentStorage, StoredDocument, resolve_document_location

logger = structlog.get_logger(__name__)

FAILED_PREFIX = "Rating failed:"

# (counted_in_mean, succeeded, total) -> overall reasoning
ReasoningBuilder = Callable[[int, int, int], str]


async def fetch_document(
    storage: DocumentStorage, url: str, procurement_id: str
) -> StoredDocument:
    """Resolve a stored document URL and download its bytes."""
    location = resolve_document_location(url, procurement_id)
    return await storage.download_document(location.bucket, location.path)


def failed_detail(name: str, url: Optional[str], reason: str) -> RatingDetail:
    return RatingDetail(
        document_name=name,
        document_url=url,
        rating=0,
        reasoning=f"{FAILED_PREFIX} {reason}",
    )


class DocumentSectionRater:
    """Rates every declared document of one section payload."""

    def __init__(
        self,
        schema: SectionSchema,
        prompt_builder: Callable[[str], str],
        count_failed: bool,
        storage: DocumentStorage,
        rater: DocumentRater,
        timeout: Optional[float] = None,
    ):
        self.schema = schema
        self.prompt_builder = prompt_builder
        self.count_failed = count_failed
        self.storage = storage
        self.rater = rater
        self.timeout = timeout if timeout is not None else settings.RATER_TIMEOUT_SECONDS

    @property
    def section(self) -> str:
        return self.schema.section.value

    def collect_documents(self, payload: Dict[str, Any]) -> List[DocumentField]:
        """Declared document fields with usable URLs; everything else is logged and skipped."""
        documents = []
        for item in self.schema.classify(payload):
            if isinstance(item, DocumentField):
                documents.append(item)
            elif isinstance(item, InvalidField):
                logger.warning(
                    "field_skipped",
                    section=self.section,
                    field=item.name,
                    reason=item.reason,
                )
        return documents

    async def _rate_document(self, field: DocumentField, procurement_id: str) -> RatingDetail:
        document = await fetch_document(self.storage, field.url, procurement_id)
        result = await self.rater.rate(
            self.prompt_builder(field.name), document.content, document.media_type
        )
        return RatingDetail(
            document_name=field.name,
            document_url=field.url,
            rating=result.rating,
            reasoning=result.reasoning,
        )

    async def rate(
        self,
        payload: Dict[str, Any],
        procurement_id: str,
        reasoning_builder: ReasoningBuilder,
    ) -> SectionRating:
        documents = self.collect_documents(payload)
        outcomes = await settle_all(
            [self._rate_document(d, procurement_id) for d in documents],
            timeout=self.timeout,
            labels=[d.name for d in documents],
        )

        details: List[RatingDetail] = []
        succeeded: List[float] = []
        for document, outcome in zip(documents, outcomes):
            if outcome.ok:
                details.append(outcome.value)
                succeeded.append(outcome.value.rating)
                logger.info(
                    "document_rated",
                    section=self.section,
                    field=document.name,
                    rating=outcome.value.rating,
                )
            else:
                details.append(failed_detail(document.name, document.url, outcome.reason))
                logger.warning(
                    "document_rating_failed",
                    section=self.section,
                    field=document.name,
                    error=outcome.reason,
                )

        counted = [d.rating for d in details] if self.count_failed else succeeded
        overall = round_half_up(mean(counted)) if counted else 0
        logger.info(
            "section_rated",
            section=self.section,
            procurement_id=procurement_id,
            documents=len(details),
            succeeded=len(succeeded),
            score=overall,
        )
        return SectionRating(
            overall_score=overall,
            details=details,
            overall_reasoning=reasoning_builder(len(counted), len(succeeded), len(details)),
        )
