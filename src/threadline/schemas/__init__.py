"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .batch import BatchCommentIds, BatchPostIds, BatchUserIds
from .comment import (
    CommentCreate,
    CommentThreadNode,
    CommentUpdate,
    CommentView,
    CommentWithReplies,
)
from .common import MessageResponse, Page, build_page, normalize_pagination
from .notification import NotificationPage, NotificationView, UnreadCount
from .post import PostCreate, PostUpdate, PostView
from .search import PostSearchFilters, UserSearchFilters
from .social import BlockedEntry, FollowEntry, FollowStatus, LikeToggle
from .user import OwnProfile, UserProfile, UserSearchResult, UserSummary, UserUpdate

__all__ = [
    "BatchCommentIds", "BatchPostIds", "BatchUserIds",
    "BlockedEntry", "CommentCreate", "CommentThreadNode", "CommentUpdate",
    "CommentView", "CommentWithReplies",
    "FollowEntry", "FollowStatus", "LikeToggle", "MessageResponse",
    "NotificationPage", "NotificationView",
    "OwnProfile", "Page", "PostCreate", "PostSearchFilters", "PostUpdate", "PostView",
    "UnreadCount", "UserProfile", "UserSearchFilters", "UserSearchResult",
    "UserSummary", "UserUpdate",
    "build_page", "normalize_pagination",
]
