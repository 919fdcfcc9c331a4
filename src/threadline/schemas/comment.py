"""Comment-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import ApiModel
from .user import UserSummary


class CommentCreate(BaseModel):
    content: str
    parent_id: int | None = Field(None, alias="parentId")

    model_config = ConfigDict(populate_by_name=True)


class CommentUpdate(BaseModel):
    content: str


class CommentView(ApiModel):
    """A single comment as returned to a specific viewer."""

    id: int
    post_id: int
    parent_id: int | None
    author_id: int
    author: UserSummary
    content: str
    created_at: datetime
    updated_at: datetime
    like_count: int
    is_liked: bool


class CommentWithReplies(CommentView):
    """Top-level comment carrying the first few of its direct replies."""

    replies: list[CommentView]
    replies_count: int
    has_more_replies: bool


class CommentThreadNode(CommentView):
    """Node of a depth-bounded reply tree.

    ``replies`` is empty at the depth limit even when ``replies_count`` is not.
    """

    depth: int
    replies: list[CommentThreadNode] = Field(default_factory=list)
    replies_count: int = 0


CommentThreadNode.model_rebuild()
