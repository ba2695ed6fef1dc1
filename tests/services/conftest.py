"""Service test fixtures: fake identity provider and storage around the in-memory store.

Invariants:
    - alice and bob are distinct identities with known passwords
    - The session fixture follows the fake provider; signing in there signs in here
    - The uploader clock is fixed, so storage keys are predictable
"""

import pytest

from quill.core.domain_types import UserId
from quill.core.entities import Identity
from quill.services.blog_service import BlogService
from quill.services.content_repository import ContentRepository
from quill.services.media_uploader import MediaUploader
from quill.services.session_manager import SessionManager

from tests.fakes import FakeIdentityProvider, FakeObjectStorage


@pytest.fixture
def repository(db_manager):
    return ContentRepository(db_manager)


@pytest.fixture
def alice():
    return Identity(UserId("uid-alice"), "alice@example.com", "Alice")


@pytest.fixture
def bob():
    return Identity(UserId("uid-bob"), "bob@example.com", "Bob")


@pytest.fixture
def provider():
    fake = FakeIdentityProvider()
    fake.add_account("uid-alice", "alice@example.com", "wonderland", "Alice")
    fake.add_account("uid-bob", "bob@example.com", "builder1", "Bob")
    return fake


@pytest.fixture
def session(provider):
    manager = SessionManager(provider)
    yield manager
    manager.close()


@pytest.fixture
def storage():
    return FakeObjectStorage()


@pytest.fixture
def uploader(storage):
    return MediaUploader(storage, clock_ms=lambda: 1_700_000_000_000)


@pytest.fixture
def blog(repository, session, uploader):
    return BlogService(repository, session.current_identity, uploader)
