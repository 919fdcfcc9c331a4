"""Substring search over posts and users with deterministic ranking."""

from __future__ import annotations

import logging
from typing import Any, cast, get_args

from sqlalchemy.orm import Session

from threadline.core.errors import ValidationError
from threadline.core.settings import settings
from threadline.models.post import VISIBILITIES, VISIBILITY_FRIENDS, VISIBILITY_PUBLIC
from threadline.repositories.post_repo import PostFilter, PostRepository
from threadline.repositories.relationship_repo import RelationshipRepository
from threadline.repositories.user_repo import UserFilter, UserRepository
from threadline.schemas.common import Page, build_page, normalize_pagination
from threadline.schemas.post import PostView
from threadline.schemas.search import (
    QUERY_MAX_LENGTH,
    QUERY_MIN_LENGTH,
    PostSearchFilters,
    PostSort,
    UserSearchFilters,
    UserSort,
)
from threadline.schemas.user import UserSearchResult
from threadline.services import cache as keys
from threadline.services.cache import CacheClient, get_cache
from threadline.services.views import to_post_view

logger = logging.getLogger(__name__)

POST_SORTS: tuple[str, ...] = get_args(PostSort)
USER_SORTS: tuple[str, ...] = get_args(UserSort)


def clean_query(query: str | None) -> str:
    """Trim ``query`` and enforce the 1 to 200 character bound."""
    if query is None or not query.strip():
        raise ValidationError("Search query is required")
    text = query.strip()
    if not QUERY_MIN_LENGTH <= len(text) <= QUERY_MAX_LENGTH:
        raise ValidationError(f"Search query cannot exceed {QUERY_MAX_LENGTH} characters")
    return text


class SearchService:
    """Post and user search; results are cached per parameter set."""

    def __init__(self, session: Session, cache: CacheClient | None = None) -> None:
        self.posts = PostRepository(session)
        self.users = UserRepository(session)
        self.relationships = RelationshipRepository(session)
        self.cache = cache or get_cache()

    def search_posts(
        self,
        query: str | None,
        page: int = 1,
        limit: int = 10,
        viewer_id: int | None = None,
        filters: PostSearchFilters | None = None,
        sort_by: str = "relevance",
    ) -> Page[PostView]:
        """Return posts whose content or author username contains ``query``.

        Only posts the viewer may see are considered: public posts, plus
        (when authenticated) friends posts of followed authors and the
        viewer's own, never from anyone on either side of a block.
        """
        text = clean_query(query)
        page, limit, skip = normalize_pagination(page, limit)
        if sort_by not in POST_SORTS:
            raise ValidationError(f"sortBy must be one of: {', '.join(POST_SORTS)}")
        filters = filters or PostSearchFilters()
        allowed = [VISIBILITY_PUBLIC]
        if viewer_id is not None:
            allowed.append(VISIBILITY_FRIENDS)
        if filters.visibility is not None:
            if filters.visibility not in VISIBILITIES:
                raise ValidationError("Unknown visibility filter")
            allowed = [v for v in allowed if v == filters.visibility]

        params: dict[str, Any] = {
            "query": text,
            "page": page,
            "limit": limit,
            "viewerId": viewer_id,
            "sortBy": sort_by,
            "filters": filters.model_dump(mode="json"),
        }

        def load() -> Page[PostView]:
            blocked = (
                self.relationships.blocked_ids_involving(viewer_id)
                if viewer_id is not None
                else set()
            )
            flt = PostFilter(
                search=text,
                visibilities=allowed,
                exclude_author_ids=blocked,
                friends_of=viewer_id,
                author_ids=None if filters.author_id is None else [filters.author_id],
                min_likes=filters.min_likes,
                min_comments=filters.min_comments,
                created_after=filters.date_from,
                created_before=filters.date_to,
            )
            records = self.posts.find_posts(
                flt, cast(PostSort, sort_by), skip, limit, viewer_id=viewer_id
            )
            total = self.posts.count_posts(flt)
            return build_page([to_post_view(r) for r in records], total, page, limit)

        return self.cache.read_through(
            keys.search_key("posts", params), settings.cache_ttl_search, Page[PostView], load
        )

    def search_users(
        self,
        query: str | None,
        page: int = 1,
        limit: int = 10,
        viewer_id: int | None = None,
        filters: UserSearchFilters | None = None,
        sort_by: str = "relevance",
    ) -> Page[UserSearchResult]:
        """Return open accounts whose username, name or email contains ``query``.

        The searcher never sees their own account or anyone they share a block with.
        """
        text = clean_query(query)
        page, limit, skip = normalize_pagination(page, limit)
        if sort_by not in USER_SORTS:
            raise ValidationError(f"sortBy must be one of: {', '.join(USER_SORTS)}")
        filters = filters or UserSearchFilters()
        params: dict[str, Any] = {
            "query": text,
            "page": page,
            "limit": limit,
            "viewerId": viewer_id,
            "sortBy": sort_by,
            "filters": filters.model_dump(mode="json"),
        }

        def load() -> Page[UserSearchResult]:
            excluded: set[int] = set()
            if viewer_id is not None:
                excluded = self.relationships.blocked_ids_involving(viewer_id) | {viewer_id}
            flt = UserFilter(
                search=text,
                exclude_ids=frozenset(excluded),
                verified_only=filters.verified_only,
                has_bio=filters.has_bio,
            )
            users = self.users.search(flt, cast(UserSort, sort_by), skip, limit)
            total = self.users.count(flt)
            items = [UserSearchResult.model_validate(u) for u in users]
            return build_page(items, total, page, limit)

        return self.cache.read_through(
            keys.search_key("users", params),
            settings.cache_ttl_search,
            Page[UserSearchResult],
            load,
        )
