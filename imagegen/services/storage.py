"""Google Cloud Storage helper for generated images.

Objects are written once and never updated, under:

    generated/{uid}/{timestamp_ms}.jpg
    image-references/{uid}/{timestamp_ms}.jpg

Callers only ever receive a signed read URL with a fixed far-future expiry.
"""
from __future__ import annotations

import io
import logging
import time
from functools import lru_cache
from typing import Optional

from google.cloud import storage
from PIL import Image

from imagegen.config import Settings, get_settings
from imagegen.models import ReferenceImage
from imagegen.services.errors import InvalidReferenceImageError

logger = logging.getLogger(__name__)

GENERATED_PREFIX = "generated"
REFERENCE_PREFIX = "image-references"


class StorageService:  # pylint: disable=too-few-public-methods
    """Wrapper around Google Cloud Storage uploads and signed URLs."""

    _VALID_IMAGE_PREFIX = "image/"
    _MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB
    _CONTENT_TYPE = "image/jpeg"

    def __init__(
        self,
        bucket: Optional[storage.Bucket] = None,
        *,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        if bucket is None:
            client = storage.Client(project=self._settings.project_id)
            bucket = client.bucket(self._settings.bucket_name)
            if not bucket.exists():  # pragma: no cover
                logger.warning("GCS bucket '%s' does not exist or access denied.", self._settings.bucket_name)
        self._bucket = bucket

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    def save_generated(self, image_bytes: bytes, uid: str, *, prompt: str) -> str:
        """Store a generated image and return its signed URL.

        The prompt that produced the image is attached as object metadata.
        """

        return self._save(GENERATED_PREFIX, image_bytes, uid, metadata={"prompt": prompt})

    def save_reference(self, reference: ReferenceImage, uid: str) -> str:
        """Store the caller's reference image and return its signed URL."""

        validate_reference(reference)
        return self._save(REFERENCE_PREFIX, reference.data, uid)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _save(
        self,
        prefix: str,
        file_bytes: bytes,
        uid: str,
        *,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        blob_name = f"{prefix}/{uid}/{_timestamp_ms()}.jpg"
        blob = self._bucket.blob(blob_name)

        data_to_upload = file_bytes
        if self._settings.normalize_jpeg:
            try:
                data_to_upload = _to_jpeg(file_bytes, quality=self._settings.image_quality)
            except Exception as exc:
                logger.warning("JPEG conversion failed, uploading original bytes: %s", exc)

        if metadata:
            blob.metadata = metadata
        blob.upload_from_string(data_to_upload, content_type=self._CONTENT_TYPE)

        url = blob.generate_signed_url(expiration=self._settings.signed_url_expiry, method="GET")
        logger.info("Uploaded %s (%d bytes)", blob_name, len(data_to_upload))
        return url


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------

def validate_reference(reference: ReferenceImage) -> None:
    """Reject reference uploads that are not images or exceed 10 MB."""

    if not reference.content_type.startswith(StorageService._VALID_IMAGE_PREFIX):
        raise InvalidReferenceImageError(
            "Unsupported content_type; expected image/*, got %s" % reference.content_type
        )
    if len(reference.data) > StorageService._MAX_UPLOAD_BYTES:
        raise InvalidReferenceImageError("Image exceeds 10 MB size limit.")


def _timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def _to_jpeg(file_bytes: bytes, *, quality: int) -> bytes:
    """Re-encode image bytes as RGB JPEG using Pillow."""

    with Image.open(io.BytesIO(file_bytes)) as img:
        if img.format == "JPEG":
            return file_bytes
        img = img.convert("RGB")  # drop alpha for JPEG
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=quality, optimize=True)
        return buffer.getvalue()


@lru_cache()
def get_storage_service() -> StorageService:  # pragma: no cover
    return StorageService()
