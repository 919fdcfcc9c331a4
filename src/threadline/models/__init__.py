# src/threadline/models/__init__.py
"""SQLAlchemy models for the Threadline application."""

from .comment import Comment
from .notification import Notification
from .post import Post
from .social import Block, Follow, Like
from .user import User

__all__ = [
    "Block",
    "Comment",
    "Follow",
    "Like",
    "Notification",
    "Post",
    "User",
]
