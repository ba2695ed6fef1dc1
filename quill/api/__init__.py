"""HTTP Adapter: FastAPI routes delegating to BlogService."""
