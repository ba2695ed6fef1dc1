"""Post Schemas: Pydantic models for post drafts and API responses.

Invariants:
    - PostDraft.title and PostDraft.content are stripped and non-empty
    - PostDraft never carries author fields: the author comes from the session
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from quill.core.domain_types import MAX_CATEGORY_LENGTH, MAX_TITLE_LENGTH
from quill.core.entities import Post


class PostDraft(BaseModel):
    """What an author submits; the store assigns id and timestamps."""
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    content: str = Field(min_length=1)
    category: str | None = Field(None, max_length=MAX_CATEGORY_LENGTH)
    image_url: str | None = None

    @field_validator("title", "content")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class PostResponse(BaseModel):
    id: UUID
    title: str
    content: str
    excerpt: str
    category: str
    image_url: str | None
    author_id: str
    author_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, post: Post) -> "PostResponse":
        return cls(
            id=post.id, title=post.title, content=post.content,
            excerpt=post.excerpt, category=post.category,
            image_url=post.image_url, author_id=post.author_id,
            author_name=post.author_name, created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PublishResponse(BaseModel):
    """Created post plus the non-fatal upload warning, if any."""
    post: PostResponse
    warning: str | None = None
