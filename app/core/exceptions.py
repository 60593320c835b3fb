"""
Custom Exceptions - Procurement Rating Service
app/core/exceptions.py

Custom exception classes for repository and rating operations.
Every exception carries the HTTP status code the API layer reports it with.
"""


class RepositoryException(Exception):
    """Base exception for repository operations."""

    status_code = 500
    error_code = "REPOSITORY_ERROR"


class EntityNotFoundException(RepositoryException):
    """Entity not found in database."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with ID {entity_id} not found")


class DuplicateEntityException(RepositoryException):
    """Duplicate entity violation."""

    status_code = 409
    error_code = "DUPLICATE_ENTITY"

    def __init__(self, message: str = "Entity already exists"):
        self.message = message
        super().__init__(message)


class DatabaseConnectionException(RepositoryException):
    """Database connection failure."""

    error_code = "DATABASE_UNAVAILABLE"

    def __init__(self, message: str = "Database connection failed"):
        self.message = message
        super().__init__(message)


class RatingException(Exception):
    """Base exception for submission rating."""

    status_code = 500
    error_code = "RATING_ERROR"


class RatingValidationException(RatingException):
    """Missing or malformed submission / procurement identifier."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class DocumentReferenceException(RatingException):
    """A stored document URL cannot be resolved to a bucket and path."""

    status_code = 400
    error_code = "INVALID_DOCUMENT_REFERENCE"

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid document URL format: {url}. Original error: {reason}")


class DocumentDownloadException(RatingException):
    """Document could not be fetched from storage."""

    status_code = 502
    error_code = "DOWNLOAD_FAILED"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to download {path}: {reason}")


class RaterException(RatingException):
    """External AI rater failed or returned an unusable answer."""

    status_code = 502
    error_code = "RATER_FAILED"


class PersistenceException(RatingException):
    """Final rating result could not be saved."""

    error_code = "PERSISTENCE_FAILED"


class RatingInProgressException(RatingException):
    """Another rating run currently holds the submission."""

    status_code = 409
    error_code = "RATING_IN_PROGRESS"

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"Rating already in progress for submission {submission_id}")
