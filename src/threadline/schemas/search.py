"""Search filter schemas shared by the search service and its routes."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PostSort = Literal["relevance", "newest", "oldest", "popular"]
UserSort = Literal["relevance", "username", "newest", "oldest"]

QUERY_MIN_LENGTH = 1
QUERY_MAX_LENGTH = 200


class PostSearchFilters(BaseModel):
    """Conjunctive predicates for post search; unset fields do not constrain."""

    visibility: str | None = None
    author_id: int | None = None
    min_likes: int | None = Field(None, ge=0)
    min_comments: int | None = Field(None, ge=0)
    date_from: datetime | None = None
    date_to: datetime | None = None


class UserSearchFilters(BaseModel):
    verified_only: bool = False
    has_bio: bool = False
