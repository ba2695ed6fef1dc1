"""Comment Schemas: Pydantic models for comment drafts and API responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from quill.core.domain_types import MAX_COMMENT_LENGTH
from quill.core.entities import Comment


class CommentBody(BaseModel):
    """Request body for POST /posts/{id}/comments (post id comes from the path)."""
    content: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("comment cannot be empty or whitespace")
        return v


class CommentDraft(CommentBody):
    post_id: UUID


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    content: str
    author_id: str
    author_name: str
    created_at: datetime

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id, post_id=comment.post_id, content=comment.content,
            author_id=comment.author_id, author_name=comment.author_name,
            created_at=comment.created_at,
        )
