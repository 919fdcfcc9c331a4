"""Personalized home timeline."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from threadline.core.settings import settings
from threadline.models.post import VISIBILITY_FRIENDS, VISIBILITY_PUBLIC
from threadline.repositories.post_repo import PostFilter, PostRepository
from threadline.repositories.relationship_repo import RelationshipRepository
from threadline.schemas.common import Page, build_page, normalize_pagination
from threadline.schemas.post import PostView
from threadline.services import cache as keys
from threadline.services.cache import CacheClient, get_cache
from threadline.services.views import to_post_view

logger = logging.getLogger(__name__)

# Every author in the feed is the viewer or someone they follow, so friends
# posts are always eligible. Private posts never appear, not even the viewer's own.
FEED_VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_FRIENDS)


class FeedService:
    """Assembles the recency-ordered posts of a user and the people they follow."""

    def __init__(self, session: Session, cache: CacheClient | None = None) -> None:
        self.posts = PostRepository(session)
        self.relationships = RelationshipRepository(session)
        self.cache = cache or get_cache()

    def get_feed(self, user_id: int, page: int = 1, limit: int = 10) -> Page[PostView]:
        """Return one page of ``user_id``'s feed.

        The feed is the user's own posts plus those of everyone they follow,
        minus anyone on either side of a block with them, newest first.
        """
        page, limit, skip = normalize_pagination(page, limit)
        return self.cache.read_through(
            keys.feed_key(user_id, page, limit),
            settings.cache_ttl_feed,
            Page[PostView],
            lambda: self._assemble(user_id, page, limit, skip),
        )

    def _assemble(self, user_id: int, page: int, limit: int, skip: int) -> Page[PostView]:
        author_ids = self.relationships.following_ids(user_id) | {user_id}
        blocked = self.relationships.blocked_ids_involving(user_id)
        allowed = author_ids - blocked

        flt = PostFilter(author_ids=allowed, visibilities=FEED_VISIBILITIES)
        records = self.posts.find_posts(flt, "newest", skip, limit, viewer_id=user_id)
        total = self.posts.count_posts(flt)
        logger.debug(
            "Feed for user %s: %d authors, %d blocked, %d posts",
            user_id,
            len(allowed),
            len(blocked),
            total,
        )
        return build_page([to_post_view(r) for r in records], total, page, limit)
