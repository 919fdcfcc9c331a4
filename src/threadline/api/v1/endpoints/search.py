"""Search and trending endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query

from threadline.api.v1.dependencies import SearchServiceDep, TrendingServiceDep, ViewerIdDep
from threadline.core.settings import settings
from threadline.schemas.common import Page
from threadline.schemas.post import PostView
from threadline.schemas.search import PostSearchFilters, UserSearchFilters
from threadline.schemas.user import UserSearchResult

router = APIRouter(prefix="/search", tags=["search"])

# Missing or blank queries reach the service so they fail with its message.
SearchQuery = Annotated[str | None, Query(alias="q", description="Substring to match")]
SortQuery = Annotated[str, Query(alias="sortBy")]


@router.get("/posts", response_model=Page[PostView])
def search_posts(
    viewer_id: ViewerIdDep,
    search: SearchServiceDep,
    query: SearchQuery = None,
    page: int = 1,
    limit: int = settings.default_page_size,
    sort_by: SortQuery = "relevance",
    visibility: str | None = None,
    author_id: Annotated[int | None, Query(alias="authorId")] = None,
    min_likes: Annotated[int | None, Query(alias="minLikes", ge=0)] = None,
    min_comments: Annotated[int | None, Query(alias="minComments", ge=0)] = None,
    date_from: Annotated[datetime | None, Query(alias="dateFrom")] = None,
    date_to: Annotated[datetime | None, Query(alias="dateTo")] = None,
) -> Page[PostView]:
    """Find visible posts whose content or author username contains ``q``."""
    filters = PostSearchFilters(
        visibility=visibility,
        author_id=author_id,
        min_likes=min_likes,
        min_comments=min_comments,
        date_from=date_from,
        date_to=date_to,
    )
    return search.search_posts(query, page, limit, viewer_id, filters, sort_by)


@router.get("/users", response_model=Page[UserSearchResult])
def search_users(
    viewer_id: ViewerIdDep,
    search: SearchServiceDep,
    query: SearchQuery = None,
    page: int = 1,
    limit: int = settings.default_page_size,
    sort_by: SortQuery = "relevance",
    verified_only: Annotated[bool, Query(alias="verifiedOnly")] = False,
    has_bio: Annotated[bool, Query(alias="hasBio")] = False,
) -> Page[UserSearchResult]:
    filters = UserSearchFilters(verified_only=verified_only, has_bio=has_bio)
    return search.search_users(query, page, limit, viewer_id, filters, sort_by)


@router.get("/trending", response_model=Page[PostView])
def get_trending(
    viewer_id: ViewerIdDep,
    trending: TrendingServiceDep,
    page: int = 1,
    limit: int = 20,
    time_range: Annotated[str, Query(alias="timeRange")] = "week",
) -> Page[PostView]:
    """Return posts ranked by time-decayed engagement."""
    return trending.get_trending(page, limit, viewer_id, time_range)
