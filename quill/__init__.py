"""Quill: content repository and session-gated mutation layer for a multi-author blog.

Invariants:
    - Package root contains no executable code (no import side effects)
"""
