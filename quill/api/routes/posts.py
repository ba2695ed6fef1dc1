"""Post Routes: feed, detail, publish (with optional image) and cascade delete.

Invariants:
    - GET routes never fail because of the store: they degrade to [] / 404
    - POST returns 201 even when the image upload failed; the warning is in the body
    - DELETE checks ownership before any write
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError

from quill.core.entities import ImageFile
from quill.core.errors import InputValidationError, NotFoundError
from quill.schemas.post import PostDraft, PostResponse, PublishResponse
from quill.services.blog_service import BlogService
from quill.api.deps import get_blog_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])


def _build_draft(title: str, content: str, category: str | None) -> PostDraft:
    try:
        return PostDraft(title=title, content=content, category=category)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(loc) for loc in first["loc"]) or "body"
        raise InputValidationError(f"{field}: {first['msg']}", field) from e


@router.get("", response_model=list[PostResponse])
async def list_posts(
    limit: int | None = Query(None, ge=1, le=50),
    blog: BlogService = Depends(get_blog_service),
):
    """Newest posts first."""
    posts = await blog.feed(limit)
    return [PostResponse.from_entity(p) for p in posts]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID, blog: BlogService = Depends(get_blog_service),
):
    post = await blog.read_post(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    return PostResponse.from_entity(post)


@router.post(
    "", response_model=PublishResponse, status_code=status.HTTP_201_CREATED,
)
async def publish_post(
    title: str = Form(...),
    content: str = Form(...),
    category: str | None = Form(None),
    image: UploadFile | None = File(None),
    blog: BlogService = Depends(get_blog_service),
):
    """Create a post. An image that fails to upload is dropped with a warning."""
    draft = _build_draft(title, content, category)
    image_file = None
    if image is not None and image.filename:
        image_file = ImageFile(
            filename=image.filename,
            content_type=image.content_type or "",
            data=await image.read(),
        )
    result = await blog.publish_post(draft, image_file)
    return PublishResponse(
        post=PostResponse.from_entity(result.post), warning=result.warning,
    )


@router.delete("/{post_id}")
async def delete_post(
    post_id: UUID, blog: BlogService = Depends(get_blog_service),
):
    """Delete an owned post and all of its comments."""
    removed = await blog.remove_post(post_id)
    return {"deleted": True, "comments_removed": removed}
