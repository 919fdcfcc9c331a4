"""Post lifecycle: create, read, update and soft-delete."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from threadline.core.errors import ForbiddenError, NotFoundError, ValidationError
from threadline.core.settings import settings
from threadline.models import Post
from threadline.models.post import (
    POST_CONTENT_MAX_LENGTH,
    POST_MEDIA_MAX_COUNT,
    VISIBILITIES,
    VISIBILITY_FRIENDS,
    VISIBILITY_PUBLIC,
)
from threadline.repositories.post_repo import PostFilter, PostRepository
from threadline.repositories.relationship_repo import RelationshipRepository
from threadline.repositories.user_repo import UserRepository
from threadline.schemas.common import Page, build_page, normalize_pagination
from threadline.schemas.post import PostView
from threadline.services import cache as keys
from threadline.services.access import can_view, visible_visibilities
from threadline.services.cache import CacheClient, get_cache
from threadline.services.invalidation import CacheInvalidationPolicy
from threadline.services.views import to_post_view

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post not found"


def clean_post_content(content: str | None) -> str:
    """Trim ``content`` and enforce the post length rules."""
    text = (content or "").strip()
    if not text:
        raise ValidationError("Post content cannot be empty")
    if len(text) > POST_CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Post content cannot exceed {POST_CONTENT_MAX_LENGTH} characters"
        )
    return text


def clean_media_urls(media_urls: list[str] | None) -> list[str]:
    urls = list(media_urls or [])
    if len(urls) > POST_MEDIA_MAX_COUNT:
        raise ValidationError(f"A post can have at most {POST_MEDIA_MAX_COUNT} media items")
    return urls


def check_visibility(visibility: str) -> str:
    if visibility not in VISIBILITIES:
        raise ValidationError(f"Visibility must be one of: {', '.join(VISIBILITIES)}")
    return visibility


class ContentService:
    """Create, read, update and delete posts with cache upkeep."""

    def __init__(
        self,
        session: Session,
        cache: CacheClient | None = None,
        policy: CacheInvalidationPolicy | None = None,
    ) -> None:
        self.session = session
        self.posts = PostRepository(session)
        self.users = UserRepository(session)
        self.relationships = RelationshipRepository(session)
        self.cache = cache or get_cache()
        self.policy = policy or CacheInvalidationPolicy(self.cache)

    def create_post(
        self,
        author_id: int,
        content: str,
        media_urls: list[str] | None = None,
        visibility: str = VISIBILITY_PUBLIC,
    ) -> PostView:
        """Validate and store a new post, then evict the author's feed pages."""
        text = clean_post_content(content)
        urls = clean_media_urls(media_urls)
        check_visibility(visibility)

        if self.users.get_active(author_id) is None:
            raise NotFoundError("User not found")
        post = self.posts.create(
            author_id=author_id, content=text, media_urls=urls, visibility=visibility
        )
        self.session.commit()
        self.policy.post_changed(post.id, author_id)
        logger.info("Post %s created by user %s", post.id, author_id)
        return self._view(post.id, author_id)

    def _view(self, post_id: int, viewer_id: int | None) -> PostView:
        record = self.posts.get_view(post_id, viewer_id)
        if record is None:
            raise NotFoundError(POST_NOT_FOUND)
        return to_post_view(record)

    def _load_visible(self, post_id: int, viewer_id: int | None) -> PostView:
        record = self.posts.get_view(post_id, viewer_id)
        if record is None:
            raise NotFoundError(POST_NOT_FOUND)
        post = record.post
        blocked = False
        follows = False
        if viewer_id is not None and viewer_id != post.author_id:
            blocked = self.relationships.is_blocked(viewer_id, post.author_id)
            if not blocked and post.visibility == VISIBILITY_FRIENDS:
                follows = self.relationships.is_following(viewer_id, post.author_id)
        if not can_view(viewer_id, post, blocked, follows):
            raise NotFoundError(POST_NOT_FOUND)
        return to_post_view(record)

    def get_post_by_id(self, post_id: int, viewer_id: int | None = None) -> PostView:
        """Return a post the viewer may see.

        Raises:
            NotFoundError: If the post is missing, deleted, or hidden from the viewer.
        """
        return self.cache.read_through(
            keys.post_key(post_id, viewer_id),
            settings.cache_ttl_post,
            PostView,
            lambda: self._load_visible(post_id, viewer_id),
        )

    def ensure_visible(self, post_id: int, viewer_id: int | None) -> PostView:
        """Like :meth:`get_post_by_id` but always reads the database."""
        return self._load_visible(post_id, viewer_id)

    def get_user_posts(
        self,
        author_id: int,
        viewer_id: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[PostView]:
        """Return an author's posts visible to the viewer, newest first."""
        page, limit, skip = normalize_pagination(page, limit)
        if self.users.get_active(author_id) is None:
            raise NotFoundError("User not found")
        follows = False
        if viewer_id is not None and viewer_id != author_id:
            if self.relationships.is_blocked(viewer_id, author_id):
                raise NotFoundError("User not found")
            follows = self.relationships.is_following(viewer_id, author_id)

        flt = PostFilter(
            author_ids=[author_id],
            visibilities=visible_visibilities(viewer_id, author_id, follows),
        )
        records = self.posts.find_posts(flt, "newest", skip, limit, viewer_id=viewer_id)
        total = self.posts.count_posts(flt)
        return build_page([to_post_view(r) for r in records], total, page, limit)

    def _get_owned(self, post_id: int, user_id: int) -> Post:
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError(POST_NOT_FOUND)
        if post.author_id != user_id:
            raise ForbiddenError("You can only modify your own posts")
        return post

    def update_post(
        self,
        post_id: int,
        user_id: int,
        *,
        content: str | None = None,
        media_urls: list[str] | None = None,
        visibility: str | None = None,
    ) -> PostView:
        """Apply the provided fields to the caller's own post."""
        changes: dict[str, object] = {}
        if content is not None:
            changes["content"] = clean_post_content(content)
        if media_urls is not None:
            changes["media_urls"] = clean_media_urls(media_urls)
        if visibility is not None:
            changes["visibility"] = check_visibility(visibility)

        post = self._get_owned(post_id, user_id)
        if changes:
            self.posts.update(post, **changes)
            self.session.commit()
            self.policy.post_changed(post.id, post.author_id)
        return self._view(post.id, user_id)

    def delete_post(self, post_id: int, user_id: int) -> None:
        """Soft-delete the caller's own post."""
        post = self._get_owned(post_id, user_id)
        self.posts.soft_delete(post)
        self.session.commit()
        self.policy.post_changed(post.id, post.author_id)
        logger.info("Post %s deleted by user %s", post_id, user_id)
