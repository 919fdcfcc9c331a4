"""Schemas for follow, block and like responses."""
from __future__ import annotations

from datetime import datetime

from .common import ApiModel
from .user import UserSummary


class FollowEntry(ApiModel):
    user: UserSummary
    followed_at: datetime


class BlockedEntry(ApiModel):
    user: UserSummary
    blocked_at: datetime


class FollowStatus(ApiModel):
    is_following: bool


class LikeToggle(ApiModel):
    liked: bool
