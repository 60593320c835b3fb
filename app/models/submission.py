"""
Submission Models - Procurement Rating Service
app/models/submission.py

Submission records plus the per-section field declarations that decide which
payload fields are documents to rate and which are plain values.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from app.models.enumerations import FieldKind, RatingStatus, Section


# =============================================================================
# SUBMISSION RECORD
# =============================================================================

class SubmissionRecord(BaseModel):
    """A bidder's application packet as held by the submission store."""

    submission_id: str
    procurement_id: Optional[str] = None
    core_data: Optional[Any] = None
    experience_data: Optional[Any] = None
    team_data: Optional[Any] = None
    # Left untyped: the price rater reports invalid values instead of the loader
    proposed_price: Optional[Any] = None
    rating_status: RatingStatus = RatingStatus.PENDING
    rating_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    """Model for recording a new application packet."""

    submission_id: str = Field(..., min_length=1, max_length=255, pattern=r"^[A-Za-z0-9_\-]+$")
    procurement_id: str = Field(..., min_length=1, max_length=255)
    proposed_price: Optional[float] = Field(default=None, ge=0)
    core_data: Dict[str, Any] = Field(default_factory=dict)
    experience_data: Dict[str, Any] = Field(default_factory=dict)
    team_data: Dict[str, Any] = Field(default_factory=dict)


class SubmissionSummary(BaseModel):
    """Row returned by the submissions listing."""

    submission_id: str
    procurement_id: Optional[str] = None
    rating_status: RatingStatus
    rating_data: Optional[Dict[str, Any]] = None


# =============================================================================
# FIELD CLASSIFICATION
# =============================================================================

def is_document_url(value: Any) -> bool:
    """True for absolute http(s) URLs."""
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class DocumentField:
    name: str
    url: str


@dataclass(frozen=True)
class ScalarField:
    name: str
    value: Any


@dataclass(frozen=True)
class InvalidField:
    name: str
    value: Any
    reason: str


ClassifiedField = Union[DocumentField, ScalarField, InvalidField]


class SectionSchema:
    """Declares, per field, whether a section value is scalar or a document."""

    def __init__(
        self,
        section: Section,
        document_fields: Iterable[str],
        scalar_fields: Iterable[str] = (),
    ):
        self.section = section
        self.kinds: Dict[str, FieldKind] = {name: FieldKind.SCALAR for name in scalar_fields}
        self.kinds.update({name: FieldKind.DOCUMENT for name in document_fields})

    @property
    def document_fields(self) -> List[str]:
        return [n for n, k in self.kinds.items() if k == FieldKind.DOCUMENT]

    def classify_field(self, name: str, value: Any) -> ClassifiedField:
        kind = self.kinds.get(name)
        if kind is None:
            return InvalidField(name, value, f"field not declared for {self.section.value} section")
        if kind == FieldKind.SCALAR:
            return ScalarField(name, value)
        if not is_document_url(value):
            return InvalidField(name, value, "document reference missing or not an http(s) URL")
        return DocumentField(name, value)

    def classify(self, payload: Dict[str, Any]) -> List[ClassifiedField]:
        return [self.classify_field(name, value) for name, value in payload.items()]


CORE_SCHEMA = SectionSchema(
    Section.CORE,
    document_fields=[
        "license",
        "criminal_record_certificate",
        "certificate_no_pending_lawsuit",
        "certificate_good_standing",
        "tax_clearance",
    ],
    scalar_fields=["business_registration_number"],
)

EXPERIENCE_SCHEMA = SectionSchema(
    Section.EXPERIENCE,
    document_fields=["similar_projects_evidence", "urban_trails_evidence"],
)


# =============================================================================
# TEAM DATA
# =============================================================================

TEAM_FILE_FIELDS = ("cv", "diplomas", "credentials")

# Top-level team keys; methodology and QA plan are recorded but not rated
TEAM_SECTION_FIELDS = ("members", "methodology", "quality_assurance_plan")


class TeamMember(BaseModel):
    """Declared attributes and uploaded files of one key team member."""

    full_name: Optional[Any] = Field(default=None, alias="fullName")
    profession: Optional[Any] = None
    years_experience: Optional[Any] = Field(default=None, alias="yearsExperience")
    cv: Optional[Any] = None
    diplomas: Optional[Any] = None
    credentials: Optional[Any] = None

    class Config:
        populate_by_name = True
        extra = "allow"

    def file_url(self, field: str) -> Optional[str]:
        value = getattr(self, field, None)
        return value if is_document_url(value) else None

