"""Follows, likes and blocks.

Creating a relationship that already exists is a conflict, never a silent
no-op; callers that want flip semantics use the ``toggle_*`` methods.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from threadline.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from threadline.core.settings import settings
from threadline.models import Comment, User
from threadline.repositories.comment_repo import CommentRepository
from threadline.repositories.like_repo import LikeRepository, LikeTarget
from threadline.repositories.relationship_repo import EdgeFilter, RelationshipRepository
from threadline.repositories.user_repo import UserRepository
from threadline.schemas.common import Page, build_page, normalize_pagination
from threadline.schemas.social import BlockedEntry, FollowEntry
from threadline.services import cache as keys
from threadline.services.cache import CacheClient, get_cache
from threadline.services.content import ContentService
from threadline.services.invalidation import CacheInvalidationPolicy
from threadline.services.notifications import NotificationService
from threadline.services.views import to_user_summary

logger = logging.getLogger(__name__)


class SocialService:
    """Relationship writes and the cached follower/following lists."""

    def __init__(
        self,
        session: Session,
        cache: CacheClient | None = None,
        policy: CacheInvalidationPolicy | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self.session = session
        self.cache = cache or get_cache()
        self.policy = policy or CacheInvalidationPolicy(self.cache)
        self.notifications = notifications or NotificationService(session)
        self.users = UserRepository(session)
        self.relationships = RelationshipRepository(session)
        self.likes = LikeRepository(session)
        self.comments = CommentRepository(session)
        self.content = ContentService(session, self.cache, self.policy)

    def _active_user(self, user_id: int) -> User:
        user = self.users.get_active(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # --- Follows ------------------------------------------------------------------

    def follow_user(self, follower_id: int, following_id: int) -> None:
        """Create a follow edge.

        Raises:
            ValidationError: On a self-follow.
            NotFoundError: If either account is missing or closed.
            ConflictError: If the edge already exists.
            ForbiddenError: If a block exists between the two users.
        """
        if follower_id == following_id:
            raise ValidationError("You cannot follow yourself")
        follower = self._active_user(follower_id)
        self._active_user(following_id)
        if self.relationships.is_following(follower_id, following_id):
            raise ConflictError("You are already following this user")
        if self.relationships.is_blocked(follower_id, following_id):
            raise ForbiddenError("Cannot follow this user")

        self.relationships.create_follow(follower_id, following_id)
        self.session.commit()
        self.policy.follow_changed(follower_id, following_id)
        self.policy.profile_changed(follower_id)
        self.policy.profile_changed(following_id)
        logger.info("User %s followed %s", follower_id, following_id)
        self.notifications.notify_new_follower(following_id, follower_id, follower.username)

    def unfollow_user(self, follower_id: int, following_id: int) -> None:
        if not self.relationships.delete_follow(follower_id, following_id):
            raise ConflictError("You are not following this user")
        self.session.commit()
        self.policy.follow_changed(follower_id, following_id)
        self.policy.profile_changed(follower_id)
        self.policy.profile_changed(following_id)
        logger.info("User %s unfollowed %s", follower_id, following_id)

    def is_following(self, follower_id: int, following_id: int) -> bool:
        return self.relationships.is_following(follower_id, following_id)

    def _follow_page(self, flt: EdgeFilter, page: int, limit: int, skip: int) -> Page[FollowEntry]:
        edges = self.relationships.find_follow_edges(flt, skip, limit)
        total = self.relationships.count_follow_edges(flt)
        items = [
            FollowEntry(user=to_user_summary(user), followed_at=follow.created_at)
            for follow, user in edges
        ]
        return build_page(items, total, page, limit)

    def get_followers(self, user_id: int, page: int = 1, limit: int = 20) -> Page[FollowEntry]:
        """Return the accounts following ``user_id``, most recent first."""
        page, limit, skip = normalize_pagination(page, limit)
        self._active_user(user_id)
        return self.cache.read_through(
            keys.followers_key(user_id, page, limit),
            settings.cache_ttl_follow_lists,
            Page[FollowEntry],
            lambda: self._follow_page(EdgeFilter(user_id, "followers"), page, limit, skip),
        )

    def get_following(self, user_id: int, page: int = 1, limit: int = 20) -> Page[FollowEntry]:
        """Return the accounts ``user_id`` follows, most recent first."""
        page, limit, skip = normalize_pagination(page, limit)
        self._active_user(user_id)
        return self.cache.read_through(
            keys.following_key(user_id, page, limit),
            settings.cache_ttl_follow_lists,
            Page[FollowEntry],
            lambda: self._follow_page(EdgeFilter(user_id, "following"), page, limit, skip),
        )

    # --- Post likes ---------------------------------------------------------------

    def like_post(self, user_id: int, post_id: int) -> None:
        """Like a post the user can see.

        Raises:
            NotFoundError: If the post is missing or hidden from the user.
            ConflictError: If the user already liked it.
        """
        liker = self._active_user(user_id)
        post = self.content.ensure_visible(post_id, user_id)
        target = LikeTarget.post(post_id)
        if self.likes.find_like_existence(user_id, target):
            raise ConflictError("You have already liked this post")
        self.likes.create(user_id, target)
        self.session.commit()
        self.policy.engagement_changed(post_id)
        self.notifications.notify_post_like(post.author_id, user_id, liker.username)

    def unlike_post(self, user_id: int, post_id: int) -> None:
        if not self.likes.delete(user_id, LikeTarget.post(post_id)):
            raise ConflictError("You have not liked this post")
        self.session.commit()
        self.policy.engagement_changed(post_id)

    def toggle_post_like(self, user_id: int, post_id: int) -> bool:
        """Flip the like state and return the new one."""
        if self.likes.find_like_existence(user_id, LikeTarget.post(post_id)):
            self.unlike_post(user_id, post_id)
            return False
        self.like_post(user_id, post_id)
        return True

    # --- Comment likes ------------------------------------------------------------

    def _visible_comment(self, user_id: int, comment_id: int) -> Comment:
        comment = self.comments.get_by_id(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        self.content.ensure_visible(comment.post_id, user_id)
        if comment.author_id != user_id and self.relationships.is_blocked(
            user_id, comment.author_id
        ):
            raise NotFoundError("Comment not found")
        return comment

    def like_comment(self, user_id: int, comment_id: int) -> None:
        self._active_user(user_id)
        comment = self._visible_comment(user_id, comment_id)
        target = LikeTarget.comment(comment_id)
        if self.likes.find_like_existence(user_id, target):
            raise ConflictError("You have already liked this comment")
        self.likes.create(user_id, target)
        self.session.commit()
        self.policy.engagement_changed(comment.post_id)

    def unlike_comment(self, user_id: int, comment_id: int) -> None:
        comment = self.comments.get_by_id(comment_id, include_deleted=True)
        if not self.likes.delete(user_id, LikeTarget.comment(comment_id)):
            raise ConflictError("You have not liked this comment")
        self.session.commit()
        if comment is not None:
            self.policy.engagement_changed(comment.post_id)

    def toggle_comment_like(self, user_id: int, comment_id: int) -> bool:
        if self.likes.find_like_existence(user_id, LikeTarget.comment(comment_id)):
            self.unlike_comment(user_id, comment_id)
            return False
        self.like_comment(user_id, comment_id)
        return True

    # --- Blocks -------------------------------------------------------------------

    def block_user(self, blocker_id: int, blocked_id: int) -> None:
        """Block another user.

        Existing follow edges are kept; every read path subtracts blocked
        users, so they stop mattering until the block is lifted.
        """
        if blocker_id == blocked_id:
            raise ValidationError("You cannot block yourself")
        self._active_user(blocker_id)
        self._active_user(blocked_id)
        if self.relationships.has_blocked(blocker_id, blocked_id):
            raise ConflictError("User is already blocked")
        self.relationships.create_block(blocker_id, blocked_id)
        self.session.commit()
        self.policy.block_changed(blocker_id, blocked_id)
        logger.info("User %s blocked %s", blocker_id, blocked_id)

    def unblock_user(self, blocker_id: int, blocked_id: int) -> None:
        if not self.relationships.delete_block(blocker_id, blocked_id):
            raise ConflictError("User is not blocked")
        self.session.commit()
        self.policy.block_changed(blocker_id, blocked_id)
        logger.info("User %s unblocked %s", blocker_id, blocked_id)

    def get_blocked_users(
        self, user_id: int, page: int = 1, limit: int = 20
    ) -> Page[BlockedEntry]:
        """Return the accounts ``user_id`` has blocked, most recent first."""
        page, limit, skip = normalize_pagination(page, limit)
        edges = self.relationships.find_block_edges(user_id, skip, limit)
        total = self.relationships.count_block_edges(user_id)
        items = [
            BlockedEntry(user=to_user_summary(user), blocked_at=block.created_at)
            for block, user in edges
        ]
        return build_page(items, total, page, limit)
