"""Which cache entries each kind of write makes stale.

Mutation paths call these synchronously after committing and before they
return, so the next read after a write never sees the pre-write value.
Followers' feeds are not evicted on post writes; they expire with the feed TTL.
"""

from __future__ import annotations

import logging

from threadline.services import cache as keys
from threadline.services.cache import CacheClient, get_cache

logger = logging.getLogger(__name__)


class CacheInvalidationPolicy:
    """Maps domain events to key deletions on a :class:`CacheClient`."""

    def __init__(self, cache: CacheClient | None = None) -> None:
        self.cache = cache or get_cache()

    def post_changed(self, post_id: int, author_id: int) -> None:
        """A post was created, updated or deleted."""
        self.cache.delete_pattern(keys.post_pattern(post_id))
        self.cache.delete_pattern(keys.feed_pattern(author_id))
        logger.debug("Invalidated post %s and feed of %s", post_id, author_id)

    def engagement_changed(self, post_id: int) -> None:
        """A like or comment changed the derived counts of a post."""
        self.cache.delete_pattern(keys.post_pattern(post_id))

    def follow_changed(self, follower_id: int, following_id: int) -> None:
        self.cache.delete_pattern(keys.followers_pattern(following_id))
        self.cache.delete_pattern(keys.following_pattern(follower_id))
        self.cache.delete_pattern(keys.feed_pattern(follower_id))
        # Friends posts the follower had cached may have changed visibility.
        self.cache.delete_pattern(keys.viewer_posts_pattern(follower_id))
        logger.debug("Invalidated follow lists for %s -> %s", follower_id, following_id)

    def profile_changed(self, user_id: int) -> None:
        self.cache.delete(keys.profile_key(user_id))
        self.cache.delete(keys.own_profile_key(user_id))

    def block_changed(self, user_a: int, user_b: int) -> None:
        """A block edge between two users was created or removed."""
        for user_id in (user_a, user_b):
            self.cache.delete_pattern(keys.feed_pattern(user_id))
            self.cache.delete_pattern(keys.viewer_posts_pattern(user_id))
            self.cache.delete(keys.profile_key(user_id))
        logger.debug("Invalidated feeds after block change between %s and %s", user_a, user_b)

    def account_removed(self, user_id: int) -> None:
        """The account closed: its profile, feed and follow lists all go."""
        self.profile_changed(user_id)
        self.cache.delete_pattern(keys.feed_pattern(user_id))
        self.cache.delete_pattern(keys.followers_pattern(user_id))
        self.cache.delete_pattern(keys.following_pattern(user_id))
