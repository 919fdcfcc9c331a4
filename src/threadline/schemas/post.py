"""Post-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from threadline.models.post import VISIBILITY_PUBLIC

from .common import ApiModel
from .user import UserSummary


class PostCreate(BaseModel):
    """Schema for creating a new post.

    Length and visibility rules are enforced by the content service so the
    same checks apply to every caller.
    """

    content: str
    media_urls: list[str] = Field(default_factory=list, alias="mediaUrls")
    visibility: str = VISIBILITY_PUBLIC

    model_config = ConfigDict(populate_by_name=True)


class PostUpdate(BaseModel):
    """Schema for partially updating a post; unset fields are left alone."""

    content: str | None = None
    media_urls: list[str] | None = Field(None, alias="mediaUrls")
    visibility: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class PostView(ApiModel):
    """A post as returned to a specific viewer."""

    id: int
    author_id: int
    author: UserSummary
    content: str
    media_urls: list[str]
    visibility: str
    created_at: datetime
    updated_at: datetime
    like_count: int
    comment_count: int
    is_liked: bool
