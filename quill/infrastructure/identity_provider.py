"""Identity Provider Client: email/password auth over the Identity Toolkit REST API.

Invariants:
    - One signed-in user per client instance (client-process semantics)
    - subscribe() delivers the current state immediately, then every change
    - Listeners are notified only when the identity actually changes
    - Transport errors and 5xx responses raise NetworkUnavailableError
    - Provider error messages are mapped to core/errors.py types, never leaked raw
"""

import logging

import httpx

from quill.core.entities import Identity
from quill.core.domain_types import UserId
from quill.core.errors import (
    EmailInUseError,
    InputValidationError,
    InvalidCredentialsError,
    NetworkUnavailableError,
    NotAuthenticatedError,
    QuillError,
    WeakPasswordError,
)
from quill.core.repository_protocols import IdentityListener, Unsubscribe

logger = logging.getLogger(__name__)

SERVICE_NAME = "identity provider"

_INVALID_CREDENTIALS = {
    "EMAIL_NOT_FOUND", "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS", "USER_DISABLED",
}
_SESSION_EXPIRED = {
    "INVALID_ID_TOKEN", "TOKEN_EXPIRED", "USER_NOT_FOUND",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN",
}
_BAD_INPUT = {"INVALID_EMAIL", "MISSING_EMAIL", "MISSING_PASSWORD"}


def _error_code(response: httpx.Response) -> str:
    """Extract 'EMAIL_EXISTS' from {"error": {"message": "EMAIL_EXISTS"}}.

    Some messages carry a detail suffix ("WEAK_PASSWORD : Password should be ...").
    """
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP_{response.status_code}"
    return str(message).split(" ", 1)[0]


def map_provider_error(code: str, email: str | None = None) -> QuillError:
    if code == "EMAIL_EXISTS":
        return EmailInUseError(email or "this email")
    if code == "WEAK_PASSWORD":
        return WeakPasswordError()
    if code in _INVALID_CREDENTIALS:
        return InvalidCredentialsError()
    if code in _SESSION_EXPIRED:
        return NotAuthenticatedError("continue (session expired)")
    if code in _BAD_INPUT:
        return InputValidationError(f"Rejected by identity provider: {code}", "email")
    return NetworkUnavailableError(SERVICE_NAME, code)


def _identity_from(data: dict) -> Identity:
    return Identity(
        id=UserId(data["localId"]),
        email=data.get("email", ""),
        display_name=data.get("displayName") or None,
    )


class IdentityToolkitProvider:
    """Stateful client: remembers the signed-in user and its ID token."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://identitytoolkit.googleapis.com",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._current: Identity | None = None
        self._id_token: str | None = None
        self._listeners: list[IdentityListener] = []

    @property
    def id_token(self) -> str | None:
        return self._id_token

    async def sign_in(self, email: str, password: str) -> Identity:
        data = await self._call("signInWithPassword", {
            "email": email, "password": password, "returnSecureToken": True,
        }, email=email)
        return self._signed_in(data)

    async def sign_up(self, email: str, password: str) -> Identity:
        data = await self._call("signUp", {
            "email": email, "password": password, "returnSecureToken": True,
        }, email=email)
        return self._signed_in(data)

    async def update_display_name(self, display_name: str) -> Identity:
        if not self._id_token:
            raise NotAuthenticatedError("update your profile")
        data = await self._call("update", {
            "idToken": self._id_token,
            "displayName": display_name,
            "returnSecureToken": True,
        })
        if data.get("idToken"):
            self._id_token = data["idToken"]
        identity = _identity_from(data)
        self._set_current(identity)
        return identity

    async def sign_out(self) -> None:
        self._id_token = None
        self._set_current(None)

    async def lookup(self, id_token: str) -> Identity:
        """Resolve an ID token to its user without touching the signed-in state."""
        data = await self._call("lookup", {"idToken": id_token})
        users = data.get("users") or []
        if not users:
            raise NotAuthenticatedError("continue (unknown token)")
        return _identity_from(users[0])

    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        self._listeners.append(listener)
        self._deliver(listener, self._current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def aclose(self) -> None:
        self._listeners.clear()
        if self._owns_client:
            await self._client.aclose()

    # ─── internals ───────────────────────────────────────────────

    async def _call(self, method: str, payload: dict, email: str | None = None) -> dict:
        try:
            response = await self._client.post(
                f"/v1/accounts:{method}",
                params={"key": self._api_key},
                json=payload,
            )
        except httpx.TransportError as e:
            logger.error(f"Identity provider unreachable ({method}): {e}")
            raise NetworkUnavailableError(SERVICE_NAME, str(e)) from e
        if response.status_code >= 500:
            logger.error(
                f"Identity provider {method} returned {response.status_code}",
            )
            raise NetworkUnavailableError(
                SERVICE_NAME, f"HTTP {response.status_code}",
            )
        if response.status_code >= 400:
            code = _error_code(response)
            logger.info(
                f"Identity provider rejected {method}: {code}",
                extra={"error_code": code},
            )
            raise map_provider_error(code, email)
        return response.json()

    def _signed_in(self, data: dict) -> Identity:
        self._id_token = data.get("idToken")
        identity = _identity_from(data)
        self._set_current(identity)
        return identity

    def _set_current(self, identity: Identity | None) -> None:
        if identity == self._current:
            return
        self._current = identity
        for listener in list(self._listeners):
            self._deliver(listener, identity)

    def _deliver(self, listener: IdentityListener, identity: Identity | None) -> None:
        try:
            listener(identity)
        except Exception:
            logger.error("Identity listener raised", exc_info=True)
