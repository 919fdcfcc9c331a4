# src/threadline/services/__init__.py
"""Business logic services for the Threadline application."""

from .batch import BatchService
from .comments import CommentService
from .content import ContentService
from .feed import FeedService
from .notifications import NotificationService
from .search import SearchService
from .social import SocialService
from .trending import TrendingService
from .users import UserService

__all__ = [
    "BatchService",
    "CommentService",
    "ContentService",
    "FeedService",
    "NotificationService",
    "SearchService",
    "SocialService",
    "TrendingService",
    "UserService",
]
