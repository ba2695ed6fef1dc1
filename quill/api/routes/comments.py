"""Comment Routes: list and add comments under a post, delete a comment by id."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from quill.schemas.comment import CommentBody, CommentDraft, CommentResponse
from quill.services.blog_service import BlogService
from quill.api.deps import get_blog_service

router = APIRouter(prefix="/api/v1", tags=["comments"])


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    post_id: UUID, blog: BlogService = Depends(get_blog_service),
):
    comments = await blog.read_comments(post_id)
    return [CommentResponse.from_entity(c) for c in comments]


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: UUID,
    body: CommentBody,
    blog: BlogService = Depends(get_blog_service),
):
    comment = await blog.add_comment(
        CommentDraft(post_id=post_id, content=body.content),
    )
    return CommentResponse.from_entity(comment)


@router.delete(
    "/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_comment(
    comment_id: UUID, blog: BlogService = Depends(get_blog_service),
):
    await blog.remove_comment(comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
