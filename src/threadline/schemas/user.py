"""User-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .common import ApiModel


class UserSummary(ApiModel):
    """Public fields embedded wherever a user is referenced."""

    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None


class UserSearchResult(UserSummary):
    bio: str | None = None
    is_email_verified: bool
    created_at: datetime


class UserProfile(UserSearchResult):
    """Public profile with relationship and content counts."""

    followers_count: int
    following_count: int
    posts_count: int


class OwnProfile(UserProfile):
    """Profile as seen by its owner; adds private account fields."""

    email: str
    is_active: bool
    updated_at: datetime


class UserUpdate(BaseModel):
    """Schema for updating the caller's own profile."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)
    avatar: str | None = Field(None, max_length=2048)
