"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - PostId, CommentId wrap UUIDs; UserId wraps the provider's opaque string id
    - Every bounded length used by validation lives here
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

PostId = NewType("PostId", UUID)
CommentId = NewType("CommentId", UUID)
UserId = NewType("UserId", str)


# ─── Limits ──────────────────────────────────────────────────────

EXCERPT_LENGTH = 150
EXCERPT_SUFFIX = "..."
MAX_TITLE_LENGTH = 200
MAX_CATEGORY_LENGTH = 50
MAX_DISPLAY_NAME_LENGTH = 50
MAX_COMMENT_LENGTH = 5_000

DEFAULT_CATEGORY = "General"
ANONYMOUS_AUTHOR = "Anonymous"
IMAGE_KEY_PREFIX = "blog-images"


# ─── Enums ───────────────────────────────────────────────────────

class Category(str, Enum):
    """Categories offered to authors. Stored as free text; these are the suggestions."""
    TECHNOLOGY = "Technology"
    DESIGN = "Design"
    LIFESTYLE = "Lifestyle"
    TRAVEL = "Travel"
    BUSINESS = "Business"
    HEALTH = "Health"
    GENERAL = "General"
    CODING = "Coding"


class UploadFailureReason(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    FILE_TOO_LARGE = "file_too_large"
    EMPTY_FILE = "empty_file"
    TRANSFER_FAILED = "transfer_failed"
