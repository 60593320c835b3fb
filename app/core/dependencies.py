"""
Dependencies - Procurement Rating Service
app/core/dependencies.py

FastAPI dependency injection for the submission store and rating services.
"""

from functools import lru_cache

from app.repositories.submission_repository import SubmissionRepository
from app.services.document_rater import get_document_rater, get_holistic_rater
from app.services.rating_orchestrator import RatingOrchestrator
from app.services.s3_storage import get_document_storage


@lru_cache()
def get_submission_repository() -> SubmissionRepository:
    """Get cached SubmissionRepository instance."""
    return SubmissionRepository()


@lru_cache()
def get_rating_orchestrator() -> RatingOrchestrator:
    """Get cached RatingOrchestrator wired to the production collaborators."""
    return RatingOrchestrator(
        store=get_submission_repository(),
        storage=get_document_storage(),
        document_rater=get_document_rater(),
        holistic_rater=get_holistic_rater(),
    )
