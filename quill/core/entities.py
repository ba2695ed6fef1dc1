"""Domain Entities: immutable snapshots of posts, comments and the signed-in identity.

Invariants:
    - Entities are frozen; a change produces a new instance (dataclasses.replace)
    - Timestamps are timezone-aware UTC
    - author_name is a snapshot taken at creation, never re-read from the identity
    - Post.created_at <= Post.updated_at
"""

from dataclasses import dataclass
from datetime import datetime

from quill.core.domain_types import PostId, CommentId, UserId


@dataclass(frozen=True)
class Identity:
    """The signed-in user as reported by the identity provider."""
    id: UserId
    email: str
    display_name: str | None = None


@dataclass(frozen=True)
class Post:
    id: PostId
    title: str
    content: str
    excerpt: str
    category: str
    author_id: UserId
    author_name: str
    created_at: datetime
    updated_at: datetime
    image_url: str | None = None


@dataclass(frozen=True)
class Comment:
    id: CommentId
    post_id: PostId
    content: str
    author_id: UserId
    author_name: str
    created_at: datetime


@dataclass(frozen=True)
class ImageFile:
    """An image selected for upload: original filename, declared MIME type, raw bytes."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
