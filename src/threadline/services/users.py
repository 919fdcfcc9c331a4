"""User profiles and account closure."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from threadline.core.errors import NotFoundError
from threadline.core.settings import settings
from threadline.models import User
from threadline.repositories.comment_repo import CommentRepository
from threadline.repositories.like_repo import LikeRepository
from threadline.repositories.post_repo import PostFilter, PostRepository
from threadline.repositories.relationship_repo import EdgeFilter, RelationshipRepository
from threadline.repositories.user_repo import UserRepository
from threadline.schemas.user import OwnProfile, UserProfile, UserUpdate
from threadline.services import cache as keys
from threadline.services.cache import CacheClient, get_cache
from threadline.services.invalidation import CacheInvalidationPolicy

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"


class UserService:
    """Profile reads and writes, plus the ordered account-deletion cleanup."""

    def __init__(
        self,
        session: Session,
        cache: CacheClient | None = None,
        policy: CacheInvalidationPolicy | None = None,
    ) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.posts = PostRepository(session)
        self.comments = CommentRepository(session)
        self.likes = LikeRepository(session)
        self.relationships = RelationshipRepository(session)
        self.cache = cache or get_cache()
        self.policy = policy or CacheInvalidationPolicy(self.cache)

    def _active(self, user_id: int) -> User:
        user = self.users.get_active(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    def _profile_fields(self, user: User) -> dict[str, Any]:
        return {
            "id": user.id,
            "username": user.username,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "avatar": user.avatar,
            "bio": user.bio,
            "is_email_verified": user.is_email_verified,
            "created_at": user.created_at,
            "followers_count": self.relationships.count_follow_edges(
                EdgeFilter(user.id, "followers")
            ),
            "following_count": self.relationships.count_follow_edges(
                EdgeFilter(user.id, "following")
            ),
            "posts_count": self.posts.count_posts(PostFilter(author_ids=[user.id])),
        }

    def get_profile(self, user_id: int, viewer_id: int | None = None) -> UserProfile:
        """Return the public profile of an open account.

        Raises:
            NotFoundError: If the account is closed or a block separates the two users.
        """
        if (
            viewer_id is not None
            and viewer_id != user_id
            and self.relationships.is_blocked(viewer_id, user_id)
        ):
            raise NotFoundError(USER_NOT_FOUND)
        return self.cache.read_through(
            keys.profile_key(user_id),
            settings.cache_ttl_public_profile,
            UserProfile,
            lambda: UserProfile(**self._profile_fields(self._active(user_id))),
        )

    def _load_own(self, user_id: int) -> OwnProfile:
        user = self._active(user_id)
        return OwnProfile(
            **self._profile_fields(user),
            email=user.email,
            is_active=user.is_active,
            updated_at=user.updated_at,
        )

    def get_own_profile(self, user_id: int) -> OwnProfile:
        return self.cache.read_through(
            keys.own_profile_key(user_id),
            settings.cache_ttl_own_profile,
            OwnProfile,
            lambda: self._load_own(user_id),
        )

    def update_profile(self, user_id: int, changes: UserUpdate) -> OwnProfile:
        """Apply the fields set on ``changes`` and evict both profile entries."""
        user = self._active(user_id)
        fields = changes.model_dump(exclude_unset=True)
        if fields:
            self.users.update(user, **fields)
            self.session.commit()
            self.policy.profile_changed(user_id)
        return self._load_own(user_id)

    def delete_account(self, user_id: int) -> None:
        """Close an account.

        Relationship rows are hard-deleted while owned content is only
        soft-deleted, so the steps run explicitly and in this order:

        1. remove follow and block edges in both directions;
        2. remove the user's likes;
        3. soft-delete the user's comments and posts;
        4. deactivate the account;
        5. evict every cache entry that showed any of the above.
        """
        user = self._active(user_id)
        followers = [
            other.id
            for _, other in self.relationships.find_follow_edges(EdgeFilter(user_id, "followers"))
        ]
        following = [
            other.id
            for _, other in self.relationships.find_follow_edges(EdgeFilter(user_id, "following"))
        ]
        post_ids = self.posts.ids_by_author(user_id)

        follows_removed, blocks_removed = self.relationships.delete_edges_involving(user_id)
        likes_removed = self.likes.delete_by_user(user_id)
        comments_removed = self.comments.soft_delete_by_author(user_id)
        posts_removed = self.posts.soft_delete_by_author(user_id)
        self.users.deactivate(user)
        self.session.commit()

        self.policy.account_removed(user_id)
        for follower_id in followers:
            self.policy.follow_changed(follower_id, user_id)
            self.policy.profile_changed(follower_id)
        for following_id in following:
            self.policy.follow_changed(user_id, following_id)
            self.policy.profile_changed(following_id)
        for post_id in post_ids:
            self.policy.post_changed(post_id, user_id)
        logger.info(
            "Closed account %s: %d follows, %d blocks, %d likes removed; "
            "%d comments, %d posts soft-deleted",
            user_id,
            follows_removed,
            blocks_removed,
            likes_removed,
            comments_removed,
            posts_removed,
        )
