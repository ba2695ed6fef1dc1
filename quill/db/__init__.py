"""Database Infrastructure: SQLAlchemy declarative Base shared by all ORM models."""
