"""Boundary Protocols: contracts between core services and external collaborators.

Invariants:
    - Core never imports from infrastructure; implementations are injected
    - Every async method may raise only core/errors.py types
    - IdentityProvider.subscribe delivers the current state once on registration,
      then on every change; the last delivered value is authoritative
"""

from typing import Callable, Protocol

from quill.core.entities import Identity

IdentityListener = Callable[[Identity | None], None]
Unsubscribe = Callable[[], None]
IdentitySource = Callable[[], Identity | None]


class IdentityProvider(Protocol):
    """Contract for the external email/password identity service."""
    async def sign_in(self, email: str, password: str) -> Identity: ...
    async def sign_up(self, email: str, password: str) -> Identity: ...
    async def update_display_name(self, display_name: str) -> Identity: ...
    async def sign_out(self) -> None: ...
    async def lookup(self, id_token: str) -> Identity: ...
    def subscribe(self, listener: IdentityListener) -> Unsubscribe: ...


class ObjectStorage(Protocol):
    """Contract for write-once blob storage with retrievable URLs."""
    async def put(self, key: str, data: bytes, content_type: str) -> str: ...
    async def aclose(self) -> None: ...
