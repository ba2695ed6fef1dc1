"""Composition Root: wires settings, database, identity, storage and services for one client process.

Invariants:
    - One Quill instance owns exactly one SessionManager (one signed-in identity)
    - BlogService reads identity from that SessionManager at call time
    - aclose() releases every resource the instance created, in reverse order
"""

import logging
from dataclasses import dataclass

import httpx

from quill.config import Settings, get_settings
from quill.core.repository_protocols import ObjectStorage
from quill.infrastructure.database import DatabaseSessionManager
from quill.infrastructure.identity_provider import IdentityToolkitProvider
from quill.infrastructure.object_storage import create_object_storage
from quill.infrastructure.observability import setup_logging
from quill.services.blog_service import BlogService
from quill.services.content_repository import ContentRepository
from quill.services.media_uploader import MediaUploader
from quill.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class Quill:
    settings: Settings
    db: DatabaseSessionManager
    identity_provider: IdentityToolkitProvider
    storage: ObjectStorage
    session: SessionManager
    repository: ContentRepository
    uploader: MediaUploader
    blog: BlogService

    async def aclose(self) -> None:
        self.session.close()
        await self.storage.aclose()
        await self.identity_provider.aclose()
        await self.db.dispose()
        logger.info("Quill client closed")


async def create_quill(
    settings: Settings | None = None,
    *,
    identity_client: httpx.AsyncClient | None = None,
    storage_client: httpx.AsyncClient | None = None,
    create_tables: bool = False,
    configure_logging: bool = True,
) -> Quill:
    """Build a fully wired client. Pass httpx clients to share pools or inject transports."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)
    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if create_tables:
        await db.create_all()
    provider = IdentityToolkitProvider(
        settings.identity_api_key,
        base_url=settings.identity_api_url,
        client=identity_client,
        timeout=settings.http_timeout_seconds,
    )
    storage = create_object_storage(
        settings, client=storage_client, token_source=lambda: provider.id_token,
    )
    session = SessionManager(provider, settings.min_password_length)
    repository = ContentRepository(db)
    uploader = MediaUploader(
        storage, settings.max_upload_bytes, settings.allowed_image_types,
    )
    blog = BlogService(
        repository, session.current_identity, uploader,
        page_size=settings.posts_page_size,
    )
    logger.info("Quill client ready")
    return Quill(
        settings=settings, db=db, identity_provider=provider, storage=storage,
        session=session, repository=repository, uploader=uploader, blog=blog,
    )
