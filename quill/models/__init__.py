"""ORM Models: SQLAlchemy declarative models for posts and comments.

Invariants:
    - All models inherit from Base (db/base.py)
    - comments.post_id is an indexed column, not a foreign key: cascade is
      performed by ContentRepository.delete_dependents

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete for create_all and alembic
"""

from quill.models.post import Post  # noqa: F401
from quill.models.comment import Comment  # noqa: F401
