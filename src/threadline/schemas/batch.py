"""Request bodies for the bulk lookup endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BatchPostIds(BaseModel):
    post_ids: list[int] = Field(default_factory=list, alias="postIds")

    model_config = ConfigDict(populate_by_name=True)


class BatchUserIds(BaseModel):
    user_ids: list[int] = Field(default_factory=list, alias="userIds")

    model_config = ConfigDict(populate_by_name=True)


class BatchCommentIds(BaseModel):
    comment_ids: list[int] = Field(default_factory=list, alias="commentIds")

    model_config = ConfigDict(populate_by_name=True)
