"""Content Rules: pure derivations and validations shared by services.

Invariants:
    - make_excerpt output is at most EXCERPT_LENGTH + len(EXCERPT_SUFFIX) characters
    - Storage keys contain only [A-Za-z0-9._-/] after the owner segment
    - normalize_timestamp is the only place raw store timestamps become datetimes
    - Every check_* function raises before any IO happens
"""

import re
from datetime import datetime, timezone

from quill.core.domain_types import (
    ANONYMOUS_AUTHOR,
    DEFAULT_CATEGORY,
    EXCERPT_LENGTH,
    EXCERPT_SUFFIX,
    IMAGE_KEY_PREFIX,
    MAX_CATEGORY_LENGTH,
    MAX_DISPLAY_NAME_LENGTH,
    UploadFailureReason,
)
from quill.core.entities import Identity, ImageFile
from quill.core.errors import (
    InputValidationError, UploadFailure, WeakPasswordError,
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


# ─── Posts & Comments ────────────────────────────────────────────

def make_excerpt(content: str, length: int = EXCERPT_LENGTH) -> str:
    """First `length` characters of content, with '...' appended only when truncated."""
    if len(content) <= length:
        return content
    return content[:length] + EXCERPT_SUFFIX


def normalize_category(category: str | None) -> str:
    if category is None or not category.strip():
        return DEFAULT_CATEGORY
    category = category.strip()
    if len(category) > MAX_CATEGORY_LENGTH:
        raise InputValidationError(
            f"Category must be at most {MAX_CATEGORY_LENGTH} characters",
            "category",
        )
    return category


def author_display_name(identity: Identity) -> str:
    """Snapshot of the name shown on new content."""
    if identity.display_name and identity.display_name.strip():
        return identity.display_name.strip()
    return ANONYMOUS_AUTHOR


# ─── Media ───────────────────────────────────────────────────────

def sanitize_filename(filename: str) -> str:
    """Replace every character other than letters, digits, '.' and '-' with '_'."""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename) or "image"


def build_storage_key(owner_id: str, timestamp_ms: int, filename: str) -> str:
    return f"{IMAGE_KEY_PREFIX}/{owner_id}/{timestamp_ms}_{sanitize_filename(filename)}"


def check_image(
    image: ImageFile, max_bytes: int, allowed_types: list[str] | None = None,
) -> None:
    """Raise UploadFailure if the image must not be transferred."""
    content_type = (image.content_type or "").lower()
    if not content_type.startswith("image/") or (
        allowed_types and content_type not in allowed_types
    ):
        raise UploadFailure(
            f"'{image.filename}' is not a supported image type ({content_type or 'unknown'})",
            UploadFailureReason.UNSUPPORTED_TYPE.value,
        )
    if image.size == 0:
        raise UploadFailure(
            f"'{image.filename}' is empty", UploadFailureReason.EMPTY_FILE.value,
        )
    if image.size > max_bytes:
        raise UploadFailure(
            f"'{image.filename}' is {image.size} bytes; the limit is "
            f"{max_bytes // (1024 * 1024)} MB",
            UploadFailureReason.FILE_TOO_LARGE.value,
        )


# ─── Identity ────────────────────────────────────────────────────

def check_password_strength(password: str, min_length: int = 6) -> None:
    if len(password) < min_length:
        raise WeakPasswordError(min_length)


def check_display_name(name: str, current: str | None) -> str:
    """Return the stripped name, or raise if it is empty, too long or unchanged."""
    name = (name or "").strip()
    if not name:
        raise InputValidationError("Display name cannot be empty", "display_name")
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise InputValidationError(
            f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters",
            "display_name",
        )
    if name == current:
        raise InputValidationError("No changes to save", "display_name")
    return name


# ─── Timestamps ──────────────────────────────────────────────────

def normalize_timestamp(value: object, field: str = "timestamp") -> datetime:
    """Coerce a stored timestamp to an aware UTC datetime.

    Accepts aware datetimes, naive datetimes (read as UTC, which is what
    SQLite hands back) and ISO-8601 strings. Anything else is rejected.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise InputValidationError(
                f"{field} is not an ISO-8601 timestamp: {value!r}", field,
            ) from e
    if not isinstance(value, datetime):
        raise InputValidationError(
            f"{field} must be a datetime, got {type(value).__name__}", field,
        )
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
