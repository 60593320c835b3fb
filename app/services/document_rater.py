"""
AI Raters - Procurement Rating Service
app/services/document_rater.py

Two Gemini call shapes:
  - DocumentRater.rate(prompt, content, media_type) -> DocumentRating
      structured JSON output, one uploaded document per call
  - HolisticRater.rate_text(prompt) -> str
      free text, parsed with parse_holistic_rating()
"""

import logging
import re
from typing import Optional, Tuple

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError
from pydantic import BaseModel, ValidationError

from app.config import settings
from app.core.exceptions import RaterException
from app.scoring.utils import clamp

logger = logging.getLogger(__name__)

_RATING_PATTERN = re.compile(r"rating\**\s*:\s*\**\s*(\d{1,3}(?:\.\d+)?)", re.IGNORECASE)


class DocumentRating(BaseModel):
    """Structured answer requested from the document rater."""
    rating: float
    reasoning: str


def _make_client() -> genai.Client:
    api_key = settings.GEMINI_API_KEY.get_secret_value() if settings.GEMINI_API_KEY else None
    return genai.Client(api_key=api_key)


def parse_document_rating(response) -> DocumentRating:
    """Turn a structured-output response into a DocumentRating (rating clamped to 0-10)."""
    parsed = getattr(response, "parsed", None)
    if not isinstance(parsed, DocumentRating):
        text = getattr(response, "text", None)
        if not text:
            raise RaterException("Document rater returned an empty response")
        try:
            parsed = DocumentRating.model_validate_json(text)
        except ValidationError as e:
            raise RaterException(f"Document rater returned an unparseable response: {e.errors()[0]['msg']}")
    return DocumentRating(rating=clamp(float(parsed.rating)), reasoning=parsed.reasoning)


def parse_holistic_rating(text: str) -> Tuple[float, str, bool]:
    """
    Extract ``rating: N`` from a free-text answer.

    Returns:
        (rating, reasoning, parsed). Rating is 0 when no rating is found or it
        falls outside [0, 10]; reasoning is the text after the match, or the
        whole answer when nothing follows it.
    """
    match = _RATING_PATTERN.search(text or "")
    if not match:
        return 0.0, (text or "").strip(), False
    rating = float(match.group(1))
    if rating < 0 or rating > 10:
        return 0.0, text.strip(), False
    reasoning = text[match.end():].strip(" \n\t.-*") or text.strip()
    return rating, reasoning, True


class DocumentRater:
    """Rates one uploaded document against an evaluation prompt."""

    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self.client = client or _make_client()
        self.model = model or settings.DOCUMENT_RATER_MODEL

    async def rate(self, prompt: str, content: bytes, media_type: str) -> DocumentRating:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_text(text=prompt),
                    types.Part.from_bytes(data=content, mime_type=media_type),
                ],
                config=types.GenerateContentConfig(
                    temperature=0.0,
                    response_mime_type="application/json",
                    response_schema=DocumentRating,
                ),
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Document rater call failed ({self.model}): {e}")
            raise RaterException(f"Document rater call failed: {e}") from e
        return parse_document_rating(response)


class HolisticRater:
    """Free-text rating of a summary (team members)."""

    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self.client = client or _make_client()
        self.model = model or settings.HOLISTIC_RATER_MODEL

    async def rate_text(self, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Holistic rater call failed ({self.model}): {e}")
            raise RaterException(f"Holistic rater call failed: {e}") from e
        text = getattr(response, "text", None)
        if not text:
            raise RaterException("Holistic rater returned an empty response")
        return text


# Singleton instances
_document_rater: Optional[DocumentRater] = None
_holistic_rater: Optional[HolisticRater] = None

def get_document_rater() -> DocumentRater:
    global _document_rater
    if _document_rater is None:
        _document_rater = DocumentRater()
    return _document_rater

def get_holistic_rater() -> HolisticRater:
    global _holistic_rater
    if _holistic_rater is None:
        _holistic_rater = HolisticRater()
    return _holistic_rater
