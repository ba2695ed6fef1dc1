"""Session Manager: owns the signed-in identity for one client process.

Invariants:
    - The cached identity is written only by _set_identity (provider callback or
      update_display_name), so every subscriber sees the same value at the same time
    - Listeners are notified in registration order; a raising listener is logged
      and does not block the others
    - Callbacks may fire zero or more times; the last delivered value is authoritative
    - Local validation (password length, display name) runs before any remote call
    - update_display_name swaps the cached identity in one assignment after the
      remote profile update succeeds; no intermediate state is observable
"""

import asyncio
import logging

from quill.core.content_rules import check_display_name, check_password_strength
from quill.core.entities import Identity
from quill.core.errors import InputValidationError, NotAuthenticatedError
from quill.core.repository_protocols import (
    IdentityListener, IdentityProvider, Unsubscribe,
)

logger = logging.getLogger(__name__)


class SessionManager:
    """Explicitly owned session: pass it to collaborators instead of reading globals."""

    def __init__(self, provider: IdentityProvider, min_password_length: int = 6):
        self._provider = provider
        self._min_password_length = min_password_length
        self._identity: Identity | None = None
        self._listeners: list[IdentityListener] = []
        self._ready = asyncio.Event()
        self._detach: Unsubscribe | None = provider.subscribe(self._on_provider_change)

    # ─── state ───────────────────────────────────────────────────

    def current_identity(self) -> Identity | None:
        return self._identity

    @property
    def ready(self) -> bool:
        """True once the provider has reported its first state."""
        return self._ready.is_set()

    async def wait_until_ready(self) -> Identity | None:
        await self._ready.wait()
        return self._identity

    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        self._listeners.append(listener)
        if self.ready:
            self._deliver(listener, self._identity)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: IdentityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ─── operations ──────────────────────────────────────────────

    async def sign_in(self, email: str, password: str) -> Identity:
        email = (email or "").strip()
        if not email or not password:
            raise InputValidationError("Email and password are required", "email")
        identity = await self._provider.sign_in(email, password)
        logger.info("Signed in", extra={"user_id": identity.id})
        return identity

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None,
    ) -> Identity:
        email = (email or "").strip()
        if not email:
            raise InputValidationError("Email is required", "email")
        check_password_strength(password, self._min_password_length)
        wanted_name = None
        if display_name and display_name.strip():
            wanted_name = check_display_name(display_name, None)
        identity = await self._provider.sign_up(email, password)
        logger.info("Signed up", extra={"user_id": identity.id})
        if wanted_name:
            identity = await self.update_display_name(wanted_name)
        return identity

    async def sign_out(self) -> None:
        await self._provider.sign_out()
        self._set_identity(None)

    async def update_display_name(self, name: str) -> Identity:
        current = self._identity
        if current is None:
            raise NotAuthenticatedError("update your display name")
        name = check_display_name(name, current.display_name)
        updated = await self._provider.update_display_name(name)
        self._set_identity(updated)
        logger.info("Display name updated", extra={"user_id": updated.id})
        return updated

    def close(self) -> None:
        """Stop following the provider. Listeners stay registered but receive nothing further."""
        if self._detach is not None:
            self._detach()
            self._detach = None

    # ─── internals ───────────────────────────────────────────────

    def _on_provider_change(self, identity: Identity | None) -> None:
        self._ready.set()
        self._set_identity(identity)

    def _set_identity(self, identity: Identity | None) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        for listener in list(self._listeners):
            self._deliver(listener, identity)

    def _deliver(self, listener: IdentityListener, identity: Identity | None) -> None:
        try:
            listener(identity)
        except Exception:
            logger.error("Session listener raised", exc_info=True)
