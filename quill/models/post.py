"""Post ORM: persists a published article.

Invariants:
    - id is a UUID primary key assigned on insert
    - created_at and updated_at are set together on creation
    - author_name is a snapshot, never joined to the identity provider
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from quill.core.domain_types import (
    DEFAULT_CATEGORY, MAX_CATEGORY_LENGTH, MAX_TITLE_LENGTH,
)
from quill.db.base import Base


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(MAX_TITLE_LENGTH), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str] = mapped_column(String(160), nullable=False)
    category: Mapped[str] = mapped_column(
        String(MAX_CATEGORY_LENGTH), nullable=False, default=DEFAULT_CATEGORY,
    )
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    author_id: Mapped[str] = mapped_column(String(128), nullable=False)
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
