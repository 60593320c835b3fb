# tests/conftest.py

"""
Pytest Fixtures - Shared fakes and data for rating, store and API tests

FAKE COLLABORATORS:
- InMemorySubmissionStore: Submission Store with injectable failures
- FakeDocumentStorage:     every path downloads unless listed as failing
- FakeDocumentRater:       fixed rating, per-marker overrides and failures
- FakeHolisticRater:       "Rating: N" answers, per-role failures

Document URLs follow the stored public URL layout:
    https://files.example.com/storage/v1/object/public/<procurement>/<submission>/<file>
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_rating_orchestrator, get_submission_repository
from app.core.exceptions import (
    DocumentDownloadException,
    DuplicateEntityException,
    EntityNotFoundException,
    RaterException,
)
from app.main import app
from app.models.enumerations import RatingStatus
from app.models.rating import RatingErrorStatus
from app.models.submission import SubmissionCreate, SubmissionRecord
from app.services.document_rater import DocumentRating
from app.services.rating_lock import RatingLock
from app.services.rating_orchestrator import RatingOrchestrator
from app.services.s3_storage import StoredDocument

PROCUREMENT_ID = "proc-2024-001"


def doc_url(name: str, procurement_id: str = PROCUREMENT_ID, submission_id: str = "sub-1") -> str:
    return (
        "https://files.example.com/storage/v1/object/public/"
        f"{procurement_id}/{submission_id}/{name}.pdf"
    )


def run(coro):
    """Drive a coroutine from a synchronous test."""
    return asyncio.run(coro)


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class InMemorySubmissionStore:
    """Submission Store keeping records in a dict; failures are injectable."""

    def __init__(self, records: Iterable[SubmissionRecord] = ()):
        self.records: Dict[str, SubmissionRecord] = {r.submission_id: r for r in records}
        self.status_updates: List[tuple] = []
        self.rating_updates: List[tuple] = []
        self.fetch_error: Optional[Exception] = None
        self.status_error: Optional[Exception] = None
        self.rating_error: Optional[Exception] = None
        self.listing_error: Optional[Exception] = None

    def add(self, submission_id: str, **fields: Any) -> SubmissionRecord:
        fields.setdefault("procurement_id", PROCUREMENT_ID)
        fields.setdefault("created_at", datetime.now(timezone.utc))
        record = SubmissionRecord(submission_id=submission_id, **fields)
        self.records[submission_id] = record
        return record

    def fetch_submission_by_id(self, submission_id: str) -> SubmissionRecord:
        if self.fetch_error is not None:
            raise self.fetch_error
        if submission_id not in self.records:
            raise EntityNotFoundException("Submission", submission_id)
        return self.records[submission_id].model_copy(deep=True)

    def update_submission_status(self, submission_id, status, error_message=None) -> None:
        self.status_updates.append((submission_id, RatingStatus(status), error_message))
        if self.status_error is not None:
            raise self.status_error
        record = self.records.get(submission_id)
        if record is None:
            return
        record.rating_status = RatingStatus(status)
        if status == RatingStatus.ERROR:
            record.rating_data = RatingErrorStatus(
                error_message=error_message or "Unknown error during rating"
            ).model_dump(mode="json", by_alias=True)

    def update_submission_rating(self, submission_id, rating_data, status) -> None:
        self.rating_updates.append((submission_id, rating_data, RatingStatus(status)))
        if self.rating_error is not None:
            raise self.rating_error
        record = self.records.get(submission_id)
        if record is None:
            raise EntityNotFoundException("Submission", submission_id)
        # Stored the way the VARIANT column holds it: as JSON text
        record.rating_data = json.loads(json.dumps(rating_data))
        record.rating_status = RatingStatus(status)

    def list_submissions_by_procurement(self, procurement_id: str) -> List[SubmissionRecord]:
        if self.listing_error is not None:
            raise self.listing_error
        return [r for r in self.records.values() if r.procurement_id == procurement_id]

    def list_submissions(self, status: Optional[RatingStatus] = None) -> List[SubmissionRecord]:
        records = [r for r in self.records.values() if status is None or r.rating_status == status]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def create_submission(self, submission: SubmissionCreate) -> SubmissionRecord:
        if submission.submission_id in self.records:
            raise DuplicateEntityException(f"Submission {submission.submission_id} already exists")
        return self.add(
            submission.submission_id,
            procurement_id=submission.procurement_id,
            proposed_price=submission.proposed_price,
            core_data=submission.core_data,
            experience_data=submission.experience_data,
            team_data=submission.team_data,
        )


class FakeDocumentStorage:
    """Serves a small PDF for every path except those marked failing."""

    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.downloads: List[tuple] = []

    async def download_document(self, bucket: str, path: str) -> StoredDocument:
        self.downloads.append((bucket, path))
        if any(marker in path for marker in self.failing):
            raise DocumentDownloadException(path, "Object not found")
        return StoredDocument(content=f"%PDF-1.4 {path}".encode(), media_type="application/pdf")


class FakeDocumentRater:
    """Rates every document with a fixed score unless a marker in the content says otherwise."""

    def __init__(
        self,
        rating: float = 8.0,
        reasoning: str = "Document meets the requirements.",
        ratings: Optional[Dict[str, float]] = None,
        failing: Iterable[str] = (),
        delay: float = 0.0,
    ):
        self.rating = rating
        self.reasoning = reasoning
        self.ratings = ratings or {}
        self.failing = set(failing)
        self.delay = delay
        self.prompts: List[str] = []

    async def rate(self, prompt: str, content: bytes, media_type: str) -> DocumentRating:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        text = content.decode()
        if any(marker in text for marker in self.failing):
            raise RaterException("Document rater call failed: model unavailable")
        for marker, rating in self.ratings.items():
            if marker in text:
                return DocumentRating(rating=rating, reasoning=self.reasoning)
        return DocumentRating(rating=self.rating, reasoning=self.reasoning)


class FakeHolisticRater:
    """Answers "Rating: N" for each member; roles listed in ``failing`` raise."""

    def __init__(
        self,
        answer: str = "Rating: 7\nStrong, relevant profile.",
        answers: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
    ):
        self.answer = answer
        self.answers = answers or {}
        self.failing = set(failing)
        self.prompts: List[str] = []

    async def rate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for role in self.failing:
            if f"({role})" in prompt:
                raise RaterException("Holistic rater call failed: quota exceeded")
        for role, answer in self.answers.items():
            if f"({role})" in prompt:
                return answer
        return self.answer


# =============================================================================
# SAMPLE PAYLOADS
# =============================================================================

@pytest.fixture
def core_payload():
    return {
        "business_registration_number": "BRN-448812",
        "license": doc_url("license"),
        "tax_clearance": doc_url("tax_clearance"),
    }


@pytest.fixture
def experience_payload():
    return {
        "similar_projects_evidence": doc_url("similar_projects"),
        "urban_trails_evidence": doc_url("urban_trails"),
    }


@pytest.fixture
def team_payload():
    return {
        "members": {
            "project_manager": {
                "fullName": "Dana Kovac",
                "profession": "Civil Engineer",
                "yearsExperience": 12,
                "cv": doc_url("pm_cv"),
                "diplomas": doc_url("pm_diplomas"),
                "credentials": doc_url("pm_credentials"),
            },
            "site_engineer": {
                "fullName": "Ari Mendes",
                "profession": "Structural Engineer",
                "yearsExperience": "7",
                "cv": doc_url("se_cv"),
                "diplomas": doc_url("se_diplomas"),
                "credentials": doc_url("se_credentials"),
            },
        },
        "methodology": "Phased delivery with weekly reviews.",
    }


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def store():
    return InMemorySubmissionStore()


@pytest.fixture
def storage():
    return FakeDocumentStorage()


@pytest.fixture
def document_rater():
    return FakeDocumentRater()


@pytest.fixture
def holistic_rater():
    return FakeHolisticRater()


@pytest.fixture
def lock():
    """In-process lock only (no Redis)."""
    return RatingLock(cache_getter=lambda: None, ttl_seconds=60)


@pytest.fixture
def orchestrator(store, storage, document_rater, holistic_rater, lock):
    return RatingOrchestrator(
        store=store,
        storage=storage,
        document_rater=document_rater,
        holistic_rater=holistic_rater,
        lock=lock,
        section_timeout=30,
        cache_getter=lambda: None,
    )


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def client(store, orchestrator, monkeypatch):
    """TestClient wired to the in-memory store and fake raters, Redis disabled."""
    monkeypatch.setattr("app.scoring.ranking.get_cache", lambda: None)
    app.dependency_overrides[get_submission_repository] = lambda: store
    app.dependency_overrides[get_rating_orchestrator] = lambda: orchestrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
