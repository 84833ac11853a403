"""
Uploaded image storage.
"""

from venturematch.storage.uploads import upload_image, ALLOWED_IMAGE_TYPES

__all__ = ["upload_image", "ALLOWED_IMAGE_TYPES"]
