"""
Document Storage - Procurement Rating Service
app/services/s3_storage.py

Read-only access to uploaded application documents kept in S3, one bucket
per procurement.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse, unquote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.core.exceptions import DocumentDownloadException, DocumentReferenceException

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class DocumentLocation:
    bucket: str
    path: str


@dataclass(frozen=True)
class StoredDocument:
    content: bytes
    media_type: str


def resolve_document_location(
    url: str,
    procurement_id: str,
    prefix_segments: Optional[int] = None,
    bucket_prefix: Optional[str] = None,
) -> DocumentLocation:
    """
    Map a stored public document URL to its bucket and object path.

    Uploads live in one bucket per procurement. The object path is what
    remains of the URL path after dropping the first ``prefix_segments``
    segments, e.g. with 6:
        /storage/v1/object/public/<bucket>/<submission>/<file>.pdf
        -> <submission>/<file>.pdf
    """
    if prefix_segments is None:
        prefix_segments = settings.STORAGE_URL_PREFIX_SEGMENTS
    if bucket_prefix is None:
        bucket_prefix = settings.S3_BUCKET_PREFIX

    try:
        parsed = urlparse(url)
    except (TypeError, ValueError) as e:
        raise DocumentReferenceException(str(url), str(e))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise DocumentReferenceException(url, "not an absolute http(s) URL")

    segments = parsed.path.split("/")
    path = unquote("/".join(segments[prefix_segments:]))
    bucket = f"{bucket_prefix}{procurement_id}" if procurement_id else ""
    if not bucket or not path:
        raise DocumentReferenceException(url, "Invalid URL path segments")
    return DocumentLocation(bucket=bucket, path=path)


def guess_media_type(path: str, content_type: Optional[str]) -> str:
    if path.lower().endswith(".pdf"):
        return "application/pdf"
    return content_type or DEFAULT_MEDIA_TYPE


class DocumentStorage:
    """Read-only access to uploaded application documents on S3."""

    def __init__(self, s3_client=None):
        if s3_client is None:
            s3_client = boto3.client(
                's3',
                aws_access_key_id=(
                    settings.AWS_ACCESS_KEY_ID.get_secret_value()
                    if settings.AWS_ACCESS_KEY_ID else None
                ),
                aws_secret_access_key=(
                    settings.AWS_SECRET_ACCESS_KEY.get_secret_value()
                    if settings.AWS_SECRET_ACCESS_KEY else None
                ),
                region_name=settings.AWS_REGION
            )
        self.s3_client = s3_client
        logger.info(f"Document storage initialized in region: {settings.AWS_REGION}")

    def get_document(self, bucket: str, path: str) -> StoredDocument:
        """Download one object. Raises DocumentDownloadException on any failure."""
        logger.info(f"Attempting download: Bucket='{bucket}', Path='{path}'")
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=path)
            content = response['Body'].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Download failed for Bucket='{bucket}', Path='{path}': {code}")
            raise DocumentDownloadException(path, f"S3 error {code}")
        except BotoCoreError as e:
            logger.error(f"Download failed for Bucket='{bucket}', Path='{path}': {e}")
            raise DocumentDownloadException(path, str(e))

        if not content:
            raise DocumentDownloadException(path, "empty object")
        return StoredDocument(
            content=content,
            media_type=guess_media_type(path, response.get('ContentType')),
        )

    async def download_document(self, bucket: str, path: str) -> StoredDocument:
        """Async wrapper running the blocking boto3 call in a worker thread."""
        return await asyncio.to_thread(self.get_document, bucket, path)


# Singleton instance
_storage: Optional[DocumentStorage] = None

def get_document_storage() -> DocumentStorage:
    global _storage
    if _storage is None:
        _storage = DocumentStorage()
    return _storage
