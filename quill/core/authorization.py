"""Authorization Guard: decides whether an identity may mutate an authored entity.

Invariants:
    - Pure: no IO, no clock, no global state
    - can_mutate is True iff identity is present and identity.id == entity.author_id
    - This check is advisory; the document store must carry its own access rules
"""

from typing import Protocol

from quill.core.entities import Identity
from quill.core.errors import NotAuthenticatedError, PermissionDeniedError


class Authored(Protocol):
    """Anything with an id and an author: Post, Comment."""
    id: object
    author_id: str


def can_mutate(identity: Identity | None, entity: Authored) -> bool:
    return identity is not None and identity.id == entity.author_id


def require_owner(
    identity: Identity | None, entity: Authored, resource_type: str,
) -> Identity:
    """Return the identity if it owns the entity, otherwise raise."""
    if identity is None:
        raise NotAuthenticatedError(f"delete this {resource_type.lower()}")
    if not can_mutate(identity, entity):
        raise PermissionDeniedError(resource_type, str(entity.id))
    return identity
