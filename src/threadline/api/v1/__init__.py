# src/threadline/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    batch_router,
    comments_router,
    notifications_router,
    posts_router,
    search_router,
    social_router,
    users_router,
)

__all__ = [
    "posts_router",
    "comments_router",
    "social_router",
    "search_router",
    "users_router",
    "notifications_router",
    "batch_router",
]
