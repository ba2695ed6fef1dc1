"""Media Uploader: best-effort upload of a single post image.

Invariants:
    - Type and size are validated before any storage call
    - Storage key: blog-images/{owner_id}/{timestamp_ms}_{sanitized_filename}
    - Every failure surfaces as UploadFailure (WARNING severity); no retry
"""

import logging
import time

from quill.core.content_rules import build_storage_key, check_image
from quill.core.domain_types import UploadFailureReason
from quill.core.entities import ImageFile
from quill.core.errors import ErrorContext, QuillError, UploadFailure
from quill.core.repository_protocols import ObjectStorage

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


def _now_ms() -> int:
    return int(time.time() * 1000)


class MediaUploader:

    def __init__(
        self,
        storage: ObjectStorage,
        max_bytes: int = DEFAULT_MAX_BYTES,
        allowed_types: list[str] | None = None,
        clock_ms=_now_ms,
    ):
        self._storage = storage
        self._max_bytes = max_bytes
        self._allowed_types = allowed_types
        self._clock_ms = clock_ms

    async def upload(self, image: ImageFile, owner_id: str) -> str:
        """Store the image and return its retrieval URL, or raise UploadFailure."""
        check_image(image, self._max_bytes, self._allowed_types)
        key = build_storage_key(owner_id, self._clock_ms(), image.filename)
        logger.info("Starting image upload", extra={"storage_key": key, "user_id": owner_id})
        try:
            url = await self._storage.put(key, image.data, image.content_type)
        except UploadFailure:
            raise
        except QuillError as e:
            raise UploadFailure(
                e.message, UploadFailureReason.TRANSFER_FAILED.value,
                ErrorContext(user_id=owner_id, debug_info={"storage_key": key}),
            ) from e
        except Exception as e:
            logger.error(
                f"Storage backend raised {type(e).__name__}: {e}",
                exc_info=True, extra={"storage_key": key},
            )
            raise UploadFailure(
                f"unexpected storage error ({type(e).__name__})",
                UploadFailureReason.TRANSFER_FAILED.value,
                ErrorContext(user_id=owner_id, debug_info={"storage_key": key}),
            ) from e
        logger.info("Image upload completed", extra={"storage_key": key})
        return url
