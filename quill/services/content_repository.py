"""Content Repository: posts and comments persistence over the async document store.

Invariants:
    - Listings are ordered created_at DESC, then id DESC
    - Reads are fail-soft: any store failure is logged and yields [] or None
    - Writes are fail-loud: store failures surface as WriteError
    - create_post assigns one timestamp to both created_at and updated_at
    - delete_post = delete_entity + delete_dependents; both steps are
      delete-if-exists, so re-running after an interruption is safe
    - Ownership is NOT checked here; BlogService applies the guard first

Design Decisions:
    - Each operation opens its own session from DatabaseSessionManager, so
      concurrent calls never share a transaction
    - Comments are deleted one by one (mirrors a document store without
      server-side cascade); a failure mid-way leaves orphans for
      sweep_orphan_comments to reconcile
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, select

from quill.core.content_rules import (
    author_display_name, make_excerpt, normalize_category, normalize_timestamp,
)
from quill.core.domain_types import CommentId, PostId, UserId
from quill.core.entities import Comment, Identity, Post
from quill.core.errors import (
    DatabaseError, ErrorContext, NotAuthenticatedError, NotFoundError, WriteError,
)
from quill.infrastructure.database import DatabaseSessionManager
from quill.models.comment import Comment as CommentModel
from quill.models.post import Post as PostModel
from quill.schemas.comment import CommentDraft
from quill.schemas.post import PostDraft

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_post(row: PostModel) -> Post:
    return Post(
        id=PostId(row.id),
        title=row.title,
        content=row.content,
        excerpt=row.excerpt,
        category=row.category,
        image_url=row.image_url,
        author_id=UserId(row.author_id),
        author_name=row.author_name,
        created_at=normalize_timestamp(row.created_at, "created_at"),
        updated_at=normalize_timestamp(row.updated_at, "updated_at"),
    )


def _to_comment(row: CommentModel) -> Comment:
    return Comment(
        id=CommentId(row.id),
        post_id=PostId(row.post_id),
        content=row.content,
        author_id=UserId(row.author_id),
        author_name=row.author_name,
        created_at=normalize_timestamp(row.created_at, "created_at"),
    )


class ContentRepository:
    """CRUD, ordering and cascade for posts and comments."""

    def __init__(self, db: DatabaseSessionManager, clock=_utcnow):
        self._db = db
        self._clock = clock

    # ─── Posts ───────────────────────────────────────────────────

    async def list_posts(self, limit: int) -> list[Post]:
        if limit < 1:
            return []
        try:
            async with self._db.session() as db:
                result = await db.execute(
                    select(PostModel)
                    .order_by(PostModel.created_at.desc(), PostModel.id.desc())
                    .limit(limit),
                )
                return [_to_post(row) for row in result.scalars().all()]
        except Exception as e:
            logger.error(f"Error fetching posts: {e}", exc_info=True)
            return []

    async def get_post(self, post_id: UUID) -> Post | None:
        try:
            async with self._db.session() as db:
                row = await db.get(PostModel, post_id)
                return _to_post(row) if row else None
        except Exception as e:
            logger.error(
                f"Error fetching post: {e}", exc_info=True,
                extra={"post_id": post_id},
            )
            return None

    async def create_post(self, draft: PostDraft, author: Identity) -> Post:
        now = self._clock()
        row = PostModel(
            title=draft.title,
            content=draft.content,
            excerpt=make_excerpt(draft.content),
            category=normalize_category(draft.category),
            image_url=draft.image_url or None,
            author_id=author.id,
            author_name=author_display_name(author),
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._db.session() as db:
                db.add(row)
                await db.commit()
        except DatabaseError as e:
            logger.error(f"Error creating post: {e.message}", extra={"user_id": author.id})
            raise WriteError(
                e.message, "create post", ErrorContext(user_id=author.id),
            ) from e
        post = _to_post(row)
        logger.info("Post created", extra={"post_id": post.id, "user_id": author.id})
        return post

    async def delete_post(self, post_id: UUID) -> int:
        """Delete the post, then its comments. Returns the number of comments removed."""
        await self.delete_entity(post_id)
        return await self.delete_dependents(post_id)

    async def delete_entity(self, post_id: UUID) -> bool:
        """Delete the post row if present. Returns whether a row was removed."""
        try:
            async with self._db.session() as db:
                result = await db.execute(
                    delete(PostModel).where(PostModel.id == post_id),
                )
                await db.commit()
        except DatabaseError as e:
            logger.error(f"Error deleting post: {e.message}", extra={"post_id": post_id})
            raise WriteError(
                e.message, "delete post", ErrorContext(post_id=str(post_id)),
            ) from e
        removed = result.rowcount > 0
        logger.info("Post deleted", extra={"post_id": post_id, "removed": removed})
        return removed

    async def delete_dependents(self, post_id: UUID) -> int:
        """Delete every comment referencing post_id, one at a time. Idempotent."""
        try:
            async with self._db.session() as db:
                result = await db.execute(
                    select(CommentModel.id).where(CommentModel.post_id == post_id),
                )
                comment_ids = list(result.scalars().all())
        except DatabaseError as e:
            raise WriteError(
                e.message, "find comments to delete",
                ErrorContext(post_id=str(post_id)),
            ) from e
        removed = 0
        for comment_id in comment_ids:
            if await self.delete_comment(comment_id):
                removed += 1
        if comment_ids:
            logger.info(
                "Dependent comments deleted",
                extra={"post_id": post_id, "removed": removed},
            )
        return removed

    # ─── Comments ────────────────────────────────────────────────

    async def list_comments(self, post_id: UUID) -> list[Comment]:
        try:
            async with self._db.session() as db:
                result = await db.execute(
                    select(CommentModel)
                    .where(CommentModel.post_id == post_id)
                    .order_by(CommentModel.created_at.desc(), CommentModel.id.desc()),
                )
                return [_to_comment(row) for row in result.scalars().all()]
        except Exception as e:
            logger.error(
                f"Error fetching comments: {e}", exc_info=True,
                extra={"post_id": post_id},
            )
            return []

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        try:
            async with self._db.session() as db:
                row = await db.get(CommentModel, comment_id)
                return _to_comment(row) if row else None
        except Exception as e:
            logger.error(
                f"Error fetching comment: {e}", exc_info=True,
                extra={"comment_id": comment_id},
            )
            return None

    async def create_comment(
        self, draft: CommentDraft, author: Identity | None,
    ) -> Comment:
        if author is None:
            raise NotAuthenticatedError("comment")
        row = CommentModel(
            post_id=draft.post_id,
            content=draft.content,
            author_id=author.id,
            author_name=author_display_name(author),
            created_at=self._clock(),
        )
        try:
            async with self._db.session() as db:
                if await db.get(PostModel, draft.post_id) is None:
                    raise NotFoundError("Post", str(draft.post_id))
                db.add(row)
                await db.commit()
        except DatabaseError as e:
            logger.error(
                f"Error creating comment: {e.message}",
                extra={"post_id": draft.post_id, "user_id": author.id},
            )
            raise WriteError(
                e.message, "create comment",
                ErrorContext(post_id=str(draft.post_id), user_id=author.id),
            ) from e
        comment = _to_comment(row)
        logger.info(
            "Comment created",
            extra={"comment_id": comment.id, "post_id": comment.post_id},
        )
        return comment

    async def delete_comment(self, comment_id: UUID) -> bool:
        """Delete the comment if present. Returns whether a row was removed."""
        try:
            async with self._db.session() as db:
                result = await db.execute(
                    delete(CommentModel).where(CommentModel.id == comment_id),
                )
                await db.commit()
        except DatabaseError as e:
            logger.error(
                f"Error deleting comment: {e.message}",
                extra={"comment_id": comment_id},
            )
            raise WriteError(
                e.message, "delete comment",
                ErrorContext(comment_id=str(comment_id)),
            ) from e
        return result.rowcount > 0

    # ─── Reconciliation ──────────────────────────────────────────

    async def sweep_orphan_comments(self) -> int:
        """Delete comments whose post no longer exists. Returns the count removed."""
        try:
            async with self._db.session() as db:
                result = await db.execute(
                    select(CommentModel.post_id)
                    .where(CommentModel.post_id.not_in(select(PostModel.id)))
                    .distinct(),
                )
                orphaned_post_ids = list(result.scalars().all())
        except DatabaseError as e:
            raise WriteError(e.message, "find orphaned comments") from e
        removed = 0
        for post_id in orphaned_post_ids:
            removed += await self.delete_dependents(post_id)
        if removed:
            logger.warning(f"Swept {removed} orphaned comment(s)", extra={"removed": removed})
        return removed
