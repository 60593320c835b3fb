"""
Core Package - Procurement Rating Service
app/core/__init__.py

Core infrastructure: dependencies, exceptions, logging.
"""

from app.core.dependencies import get_rating_orchestrator, get_submission_repository
from app.core.exceptions import (
    DatabaseConnectionException,
    DocumentDownloadException,
    DocumentReferenceException,
    DuplicateEntityException,
    EntityNotFoundException,
    PersistenceException,
    RaterException,
    RatingException,
    RatingInProgressException,
    RatingValidationException,
    RepositoryException,
)
from app.core.logging_config import configure_logging

__all__ = [
    # Dependencies
    "get_rating_orchestrator",
    "get_submission_repository",
    # Exceptions
    "DatabaseConnectionException",
    "DocumentDownloadException",
    "DocumentReferenceException",
    "DuplicateEntityException",
    "EntityNotFoundException",
    "PersistenceException",
    "RaterException",
    "RatingException",
    "RatingInProgressException",
    "RatingValidationException",
    "RepositoryException",
    # Logging
    "configure_logging",
]
