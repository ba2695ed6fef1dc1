"""Blog Service: the session-gated mutation layer over ContentRepository.

Invariants:
    - Identity is read from the injected identity source at call time, never cached
    - Every delete path fetches the entity and applies require_owner before writing
    - publish_post never fails because of the image: an UploadFailure is logged,
      reported in PublishResult.warning, and the post is created without image_url
    - Reads delegate to the repository and inherit its fail-soft contract
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from quill.core.authorization import Authored, can_mutate, require_owner
from quill.core.entities import Comment, Identity, ImageFile, Post
from quill.core.errors import NotAuthenticatedError, NotFoundError, UploadFailure
from quill.core.repository_protocols import IdentitySource
from quill.schemas.comment import CommentDraft
from quill.schemas.post import PostDraft
from quill.services.content_repository import ContentRepository
from quill.services.media_uploader import MediaUploader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    post: Post
    warning: str | None = None


class BlogService:

    def __init__(
        self,
        repository: ContentRepository,
        identity_source: IdentitySource,
        uploader: MediaUploader | None = None,
        page_size: int = 6,
    ):
        self._repository = repository
        self._identity_source = identity_source
        self._uploader = uploader
        self._page_size = page_size

    # ─── reads ───────────────────────────────────────────────────

    async def feed(self, limit: int | None = None) -> list[Post]:
        return await self._repository.list_posts(limit or self._page_size)

    async def read_post(self, post_id: UUID) -> Post | None:
        return await self._repository.get_post(post_id)

    async def read_comments(self, post_id: UUID) -> list[Comment]:
        return await self._repository.list_comments(post_id)

    def can_edit(self, entity: Authored) -> bool:
        """Whether mutation controls should be shown for this entity."""
        return can_mutate(self._identity_source(), entity)

    # ─── writes ──────────────────────────────────────────────────

    async def publish_post(
        self, draft: PostDraft, image: ImageFile | None = None,
    ) -> PublishResult:
        author = self._require_identity("publish a post")
        warning = None
        if image is not None:
            if self._uploader is None:
                warning = "Image uploads are not configured; post saved without image"
            else:
                try:
                    url = await self._uploader.upload(image, author.id)
                    draft = draft.model_copy(update={"image_url": url})
                except UploadFailure as e:
                    logger.warning(
                        f"{e.message}; publishing without image",
                        extra={"user_id": author.id, "reason": e.reason},
                    )
                    warning = e.message
        post = await self._repository.create_post(draft, author)
        return PublishResult(post=post, warning=warning)

    async def add_comment(self, draft: CommentDraft) -> Comment:
        author = self._require_identity("comment")
        return await self._repository.create_comment(draft, author)

    async def remove_post(self, post_id: UUID) -> int:
        """Delete an owned post and its comments. Returns the number of comments removed."""
        post = await self._repository.get_post(post_id)
        if post is None:
            raise NotFoundError("Post", str(post_id))
        require_owner(self._identity_source(), post, "Post")
        return await self._repository.delete_post(post_id)

    async def remove_comment(self, comment_id: UUID) -> None:
        comment = await self._repository.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment", str(comment_id))
        require_owner(self._identity_source(), comment, "Comment")
        await self._repository.delete_comment(comment_id)

    def _require_identity(self, action: str) -> Identity:
        identity = self._identity_source()
        if identity is None:
            raise NotAuthenticatedError(action)
        return identity
