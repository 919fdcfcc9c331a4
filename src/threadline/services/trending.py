"""Time-decayed engagement ranking.

Scores are computed in Python from counts loaded with the candidate posts,
then the scored list is sorted and sliced. The candidate set is bounded by
the requested time range, which keeps this tractable; the ``all`` range
scans every live post.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Final

from sqlalchemy.orm import Session

from threadline.core.errors import ValidationError
from threadline.core.settings import settings
from threadline.db.time import as_utc, hours_between, utcnow
from threadline.models.post import VISIBILITY_FRIENDS, VISIBILITY_PUBLIC
from threadline.repositories.post_repo import PostFilter, PostRecord, PostRepository
from threadline.repositories.relationship_repo import RelationshipRepository
from threadline.schemas.common import Page, build_page, normalize_pagination
from threadline.schemas.post import PostView
from threadline.services import cache as keys
from threadline.services.access import can_view
from threadline.services.cache import CacheClient, get_cache
from threadline.services.views import to_post_view

logger = logging.getLogger(__name__)

LIKE_WEIGHT: Final[int] = 2
COMMENT_WEIGHT: Final[int] = 3

TIME_RANGES: Final[dict[str, timedelta | None]] = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}


def trending_score(
    like_count: int,
    comment_count: int,
    created_at: datetime,
    now: datetime,
) -> float:
    """Return ``(2*likes + 3*comments) / (hours_since_creation + 1)``."""
    engagement = like_count * LIKE_WEIGHT + comment_count * COMMENT_WEIGHT
    return engagement / (hours_between(created_at, now) + 1)


def time_threshold(time_range: str, now: datetime) -> datetime | None:
    if time_range not in TIME_RANGES:
        raise ValidationError(f"timeRange must be one of: {', '.join(TIME_RANGES)}")
    window = TIME_RANGES[time_range]
    return None if window is None else now - window


class TrendingService:
    def __init__(self, session: Session, cache: CacheClient | None = None) -> None:
        self.posts = PostRepository(session)
        self.relationships = RelationshipRepository(session)
        self.cache = cache or get_cache()

    def get_trending(
        self,
        page: int = 1,
        limit: int = 20,
        viewer_id: int | None = None,
        time_range: str = "week",
        *,
        now: datetime | None = None,
    ) -> Page[PostView]:
        """Return the highest-scoring posts of the time range visible to the viewer.

        Args:
            page: 1-based page number.
            limit: Page size.
            viewer_id: Authenticated viewer, or ``None`` for anonymous.
            time_range: One of ``day``, ``week``, ``month`` or ``all``.
            now: Reference time for scoring; defaults to the current time.

        Raises:
            ValidationError: For bad pagination or an unknown time range.
        """
        page, limit, skip = normalize_pagination(page, limit)
        reference = now or utcnow()
        threshold = time_threshold(time_range, reference)
        params = {
            "page": page,
            "limit": limit,
            "viewerId": viewer_id,
            "timeRange": time_range,
        }
        if now is not None:
            params["now"] = reference.isoformat()
        return self.cache.read_through(
            keys.search_key("trending", params),
            settings.cache_ttl_search,
            Page[PostView],
            lambda: self._rank(viewer_id, threshold, reference, page, limit, skip),
        )

    def _candidates(self, viewer_id: int | None, threshold: datetime | None) -> list[PostRecord]:
        if viewer_id is None:
            flt = PostFilter(visibilities=[VISIBILITY_PUBLIC], created_after=threshold)
            return self.posts.find_posts(flt)

        blocked = self.relationships.blocked_ids_involving(viewer_id)
        following = self.relationships.following_ids(viewer_id)
        flt = PostFilter(
            visibilities=[VISIBILITY_PUBLIC, VISIBILITY_FRIENDS],
            exclude_author_ids=blocked,
            created_after=threshold,
        )
        records = self.posts.find_posts(flt, viewer_id=viewer_id)
        # The query admits all friends posts; keep only authors the viewer follows.
        return [
            r
            for r in records
            if can_view(viewer_id, r.post, False, r.post.author_id in following)
        ]

    def _rank(
        self,
        viewer_id: int | None,
        threshold: datetime | None,
        now: datetime,
        page: int,
        limit: int,
        skip: int,
    ) -> Page[PostView]:
        candidates = self._candidates(viewer_id, threshold)
        scored = [
            (trending_score(r.like_count, r.comment_count, r.post.created_at, now), r)
            for r in candidates
        ]
        scored.sort(
            key=lambda item: (item[0], as_utc(item[1].post.created_at), item[1].post.id),
            reverse=True,
        )
        window = scored[skip : skip + limit]
        logger.debug("Ranked %d trending candidates", len(scored))
        return build_page([to_post_view(r) for _, r in window], len(scored), page, limit)
