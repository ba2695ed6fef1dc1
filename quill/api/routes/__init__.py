"""API Routes: health, posts and comments routers, registered explicitly in main.py."""
