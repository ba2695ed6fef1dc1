"""Infrastructure Layer: database, identity provider, object storage and logging adapters.

Invariants:
    - Every adapter translates its library's exceptions into core/errors.py types
"""
