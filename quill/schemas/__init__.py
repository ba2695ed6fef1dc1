"""Schemas: Pydantic models validating write inputs and shaping HTTP responses."""
