"""Services Layer: session manager, content repository, media uploader and the gated blog service.

Invariants:
    - Services orchestrate IO around the pure functions in core/
    - Reads are fail-soft, writes are fail-loud
"""
