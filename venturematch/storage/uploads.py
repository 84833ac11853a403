"""
Image uploads to local object storage.

Files land in {storage_dir}/{bucket}/{owner_id}/ and are served by the
StaticFiles mount at /storage.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from venturematch.core.config import get_settings

logger = logging.getLogger(__name__)

BUCKETS = {"company-logos", "company-covers", "profile-images"}

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


def validate_image(content_type: Optional[str], size: int, max_size_mb: int) -> None:
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValueError(
            f"Invalid image type '{content_type}'. Allowed: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}"
        )
    if size == 0:
        raise ValueError("Uploaded file is empty")
    if size > max_size_mb * 1024 * 1024:
        raise ValueError(f"File size exceeds {max_size_mb}MB limit")


def upload_image(
    bucket: str,
    owner_id: int,
    filename: str,
    content: bytes,
    content_type: Optional[str],
) -> str:
    """
    Store an image and return its public URL.

    Raises:
        ValueError: Unknown bucket, unsupported content type, empty or oversized file
    """
    if bucket not in BUCKETS:
        raise ValueError(f"Unknown storage bucket: {bucket}")

    settings = get_settings()
    validate_image(content_type, len(content), settings.max_image_upload_mb)

    ext = ALLOWED_IMAGE_TYPES[content_type]
    stored_name = f"{uuid.uuid4().hex}.{ext}"

    target_dir = Path(settings.storage_dir) / bucket / str(owner_id)
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / stored_name).write_bytes(content)

    logger.info(f"Stored {filename} ({len(content)} bytes) as {bucket}/{owner_id}/{stored_name}")
    return f"{settings.public_storage_url}/{bucket}/{owner_id}/{stored_name}"
