"""API test fixtures: the FastAPI app over ASGI with fakes behind its dependencies.

Invariants:
    - The lifespan never runs; state and dependencies are supplied here
    - "token-uid-alice" and "token-uid-bob" are the only valid bearer tokens
"""

import httpx
import pytest

from quill.api.deps import get_identity_provider, get_media_uploader
from quill.infrastructure.database import get_db_manager
from quill.main import app
from quill.services.media_uploader import MediaUploader

from tests.fakes import FakeIdentityProvider, FakeObjectStorage

ALICE = {"Authorization": "Bearer token-uid-alice"}
BOB = {"Authorization": "Bearer token-uid-bob"}


@pytest.fixture
def provider():
    fake = FakeIdentityProvider()
    fake.add_account("uid-alice", "alice@example.com", "wonderland", "Alice")
    fake.add_account("uid-bob", "bob@example.com", "builder1", None)
    return fake


@pytest.fixture
def storage():
    return FakeObjectStorage()


@pytest.fixture
async def client(db_manager, provider, storage):
    uploader = MediaUploader(storage, clock_ms=lambda: 1_700_000_000_000)
    app.dependency_overrides[get_db_manager] = lambda: db_manager
    app.dependency_overrides[get_identity_provider] = lambda: provider
    app.dependency_overrides[get_media_uploader] = lambda: uploader
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
