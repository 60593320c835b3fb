"""
Repositories Package - Procurement Rating Service
app/repositories/__init__.py

Data access layer for Snowflake database operations.
"""

from app.repositories.base import BaseRepository
from app.repositories.submission_repository import SubmissionRepository

__all__ = [
    "BaseRepository",
    "SubmissionRepository",
]
