"""Fetch many posts, users or comments in one round trip.

Post lookups consult the per-viewer ``post:{id}:{viewer}`` entries first and
load only the misses, with a single query, before caching them. Results are
keyed by id; ids that are missing or hidden from the viewer are left out.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Final

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from threadline.core.errors import ValidationError
from threadline.core.settings import settings
from threadline.models import Post
from threadline.repositories.comment_repo import CommentFilter, CommentRepository
from threadline.repositories.post_repo import PostRepository
from threadline.repositories.relationship_repo import RelationshipRepository
from threadline.repositories.user_repo import UserRepository
from threadline.schemas.comment import CommentView
from threadline.schemas.post import PostView
from threadline.schemas.user import UserSearchResult
from threadline.services import cache as keys
from threadline.services.access import can_view
from threadline.services.cache import CacheClient, get_cache
from threadline.services.views import to_comment_view, to_post_view

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE: Final[int] = 50


def _unique_ids(ids: Sequence[int], kind: str) -> list[int]:
    if len(ids) > MAX_BATCH_SIZE:
        raise ValidationError(f"Maximum {MAX_BATCH_SIZE} {kind} per batch request")
    return list(dict.fromkeys(ids))


class BatchService:
    """Bulk reads that respect the same visibility rules as single reads."""

    def __init__(self, session: Session, cache: CacheClient | None = None) -> None:
        self.session = session
        self.cache = cache or get_cache()
        self.posts = PostRepository(session)
        self.comments = CommentRepository(session)
        self.users = UserRepository(session)
        self.relationships = RelationshipRepository(session)

    def _viewer_context(self, viewer_id: int | None) -> tuple[set[int], set[int]]:
        if viewer_id is None:
            return set(), set()
        return (
            self.relationships.blocked_ids_involving(viewer_id),
            self.relationships.following_ids(viewer_id),
        )

    @staticmethod
    def _visible(
        post: Post, viewer_id: int | None, blocked: set[int], following: set[int]
    ) -> bool:
        is_blocked = viewer_id is not None and post.author_id in blocked
        follows = post.author_id in following
        return can_view(viewer_id, post, is_blocked, follows)

    def _cached_post(self, post_id: int, viewer_id: int | None) -> PostView | None:
        raw = self.cache.get_json(keys.post_key(post_id, viewer_id))
        if raw is None:
            return None
        try:
            return PostView.model_validate(raw)
        except SchemaValidationError:
            logger.warning("Discarding stale cache entry for post %s", post_id)
            return None

    def get_posts(
        self, post_ids: Sequence[int], viewer_id: int | None = None
    ) -> dict[int, PostView]:
        """Return the visible posts among ``post_ids``.

        Raises:
            ValidationError: If more than ``MAX_BATCH_SIZE`` ids are requested.
        """
        ids = _unique_ids(post_ids, "posts")
        if not ids:
            return {}
        blocked, following = self._viewer_context(viewer_id)

        results: dict[int, PostView] = {}
        misses: list[int] = []
        for post_id in ids:
            cached = self._cached_post(post_id, viewer_id)
            if cached is None:
                misses.append(post_id)
            elif cached.author_id not in blocked:
                results[post_id] = cached

        if misses:
            records = self.posts.find_posts_by_ids(misses, viewer_id=viewer_id)
            for post_id, record in records.items():
                if not self._visible(record.post, viewer_id, blocked, following):
                    continue
                view = to_post_view(record)
                results[post_id] = view
                self.cache.set_json(
                    keys.post_key(post_id, viewer_id),
                    view.model_dump(mode="json", by_alias=True),
                    settings.cache_ttl_post,
                )
        logger.debug(
            "Batch posts: %d requested, %d from cache, %d returned",
            len(ids),
            len(ids) - len(misses),
            len(results),
        )
        return {post_id: results[post_id] for post_id in ids if post_id in results}

    def get_users(
        self, user_ids: Sequence[int], viewer_id: int | None = None
    ) -> dict[int, UserSearchResult]:
        """Return the open accounts among ``user_ids`` not blocked from the viewer.

        Cached public profiles are reused; the rest load in one query.
        """
        ids = _unique_ids(user_ids, "users")
        if not ids:
            return {}
        blocked, _ = self._viewer_context(viewer_id)
        wanted = [user_id for user_id in ids if user_id not in blocked]

        results: dict[int, UserSearchResult] = {}
        misses: list[int] = []
        for user_id in wanted:
            raw = self.cache.get_json(keys.profile_key(user_id))
            if raw is None:
                misses.append(user_id)
                continue
            try:
                results[user_id] = UserSearchResult.model_validate(raw)
            except SchemaValidationError:
                misses.append(user_id)
        for user in self.users.get_active_many(misses):
            results[user.id] = UserSearchResult.model_validate(user)
        return {user_id: results[user_id] for user_id in ids if user_id in results}

    def get_comments(
        self, comment_ids: Sequence[int], viewer_id: int | None = None
    ) -> dict[int, CommentView]:
        """Return the comments among ``comment_ids`` whose post the viewer may see."""
        ids = _unique_ids(comment_ids, "comments")
        if not ids:
            return {}
        blocked, following = self._viewer_context(viewer_id)
        records = self.comments.find_comments(
            CommentFilter(ids=ids, exclude_author_ids=blocked),
            viewer_id=viewer_id,
        )
        post_ids = {record.comment.post_id for record in records}
        posts = self.posts.find_posts_by_ids(sorted(post_ids), viewer_id=viewer_id)

        results: dict[int, CommentView] = {}
        for record in records:
            post_record = posts.get(record.comment.post_id)
            if post_record is None:
                continue
            if not self._visible(post_record.post, viewer_id, blocked, following):
                continue
            results[record.comment.id] = to_comment_view(record)
        return {comment_id: results[comment_id] for comment_id in ids if comment_id in results}
