# src/threadline/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .batch import router as batch_router
from .comments import router as comments_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .search import router as search_router
from .social import router as social_router
from .users import router as users_router

__all__ = [
    "posts_router",
    "comments_router",
    "social_router",
    "search_router",
    "users_router",
    "notifications_router",
    "batch_router",
]
