"""API Dependencies: per-request identity and a BlogService bound to it.

Invariants:
    - Requests without an Authorization header act anonymously (identity None)
    - A bearer token is resolved through the identity provider on every request
    - Image uploads to remote storage carry the same bearer token as the request
    - The BlogService built here sees exactly one identity for its whole lifetime
"""

from fastapi import Depends, Header, Request

from quill.config import Settings, get_settings
from quill.core.entities import Identity
from quill.core.errors import NotAuthenticatedError
from quill.core.repository_protocols import IdentityProvider
from quill.infrastructure.database import DatabaseSessionManager, get_db_manager
from quill.infrastructure.object_storage import create_object_storage
from quill.services.blog_service import BlogService
from quill.services.content_repository import ContentRepository
from quill.services.media_uploader import MediaUploader


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_repository(
    db: DatabaseSessionManager = Depends(get_db_manager),
) -> ContentRepository:
    return ContentRepository(db)


def get_bearer_token(authorization: str | None = Header(None)) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise NotAuthenticatedError("continue (expected a Bearer token)")
    return token.strip()


async def get_request_identity(
    token: str | None = Depends(get_bearer_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity | None:
    if token is None:
        return None
    return await provider.lookup(token)


def get_media_uploader(
    request: Request,
    token: str | None = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> MediaUploader:
    """Uploader bound to this request: remote storage writes act as the caller."""
    storage = create_object_storage(
        settings, client=request.app.state.storage_client,
        token_source=lambda: token,
    )
    return MediaUploader(
        storage, settings.max_upload_bytes, settings.allowed_image_types,
    )


def get_blog_service(
    repository: ContentRepository = Depends(get_repository),
    uploader: MediaUploader = Depends(get_media_uploader),
    identity: Identity | None = Depends(get_request_identity),
    settings: Settings = Depends(get_settings),
) -> BlogService:
    return BlogService(
        repository, lambda: identity, uploader, page_size=settings.posts_page_size,
    )
