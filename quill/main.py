"""Quill API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map QuillError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, identity provider and object storage initialized in lifespan
"""

import logging
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from quill.api.error_handlers import register_error_handlers
from quill.api.routes import comments, health, posts
from quill.config import get_settings
from quill.infrastructure.database import init_db
from quill.infrastructure.identity_provider import IdentityToolkitProvider
from quill.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    # Stateless use: the server only calls lookup(), never sign_in()
    provider = IdentityToolkitProvider(
        settings.identity_api_key,
        base_url=settings.identity_api_url,
        timeout=settings.http_timeout_seconds,
    )
    # Shared pool; each request builds its own storage bound to its bearer token
    storage_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.identity_provider = provider
    app.state.storage_client = storage_client
    logger.info("Quill API started")
    yield
    logger.info("Quill API shutting down")
    await storage_client.aclose()
    await provider.aclose()
    await db.dispose()


app = FastAPI(
    title="Quill API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(posts.router)
app.include_router(comments.router)

register_error_handlers(app)

# Locally stored images are served by the API itself
if settings.storage_backend == "local" and settings.media_base_url.startswith("/"):
    os.makedirs(settings.media_root, exist_ok=True)
    app.mount(
        settings.media_base_url,
        StaticFiles(directory=settings.media_root),
        name="media",
    )
