"""Comment tree assembly and comment lifecycle.

A post's comments are materialized two levels at a time: one page of
top-level comments plus a single batched query for all of their direct
replies. Deeper levels come from :meth:`CommentService.get_comment_replies`
or the depth-bounded :meth:`CommentService.get_comment_thread`, which issues
one query per level and never one per comment.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy.orm import Session

from threadline.core.errors import ForbiddenError, NotFoundError, ValidationError
from threadline.core.settings import settings
from threadline.models import Comment, Post
from threadline.models.comment import COMMENT_CONTENT_MAX_LENGTH
from threadline.models.post import VISIBILITY_FRIENDS
from threadline.repositories.comment_repo import CommentFilter, CommentRecord, CommentRepository
from threadline.repositories.post_repo import PostRepository
from threadline.repositories.relationship_repo import RelationshipRepository
from threadline.repositories.user_repo import UserRepository
from threadline.schemas.comment import CommentThreadNode, CommentView, CommentWithReplies
from threadline.schemas.common import Page, build_page, normalize_pagination
from threadline.services.access import can_view
from threadline.services.cache import CacheClient, get_cache
from threadline.services.invalidation import CacheInvalidationPolicy
from threadline.services.notifications import NotificationService
from threadline.services.views import to_comment_view

logger = logging.getLogger(__name__)

COMMENT_NOT_FOUND = "Comment not found"


def clean_comment_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment content cannot be empty")
    if len(text) > COMMENT_CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment content cannot exceed {COMMENT_CONTENT_MAX_LENGTH} characters"
        )
    return text


class CommentService:
    """Reads and writes comments on posts the caller is allowed to see."""

    def __init__(
        self,
        session: Session,
        cache: CacheClient | None = None,
        policy: CacheInvalidationPolicy | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self.session = session
        self.comments = CommentRepository(session)
        self.posts = PostRepository(session)
        self.users = UserRepository(session)
        self.relationships = RelationshipRepository(session)
        self.policy = policy or CacheInvalidationPolicy(cache or get_cache())
        self.notifications = notifications or NotificationService(session)

    # --- Visibility ---------------------------------------------------------------

    def _visible_post(self, post_id: int, viewer_id: int | None) -> Post:
        """Return the post if it exists and the viewer may see it, else 404."""
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        blocked = False
        follows = False
        if viewer_id is not None and viewer_id != post.author_id:
            blocked = self.relationships.is_blocked(viewer_id, post.author_id)
            if not blocked and post.visibility == VISIBILITY_FRIENDS:
                follows = self.relationships.is_following(viewer_id, post.author_id)
        if not can_view(viewer_id, post, blocked, follows):
            raise NotFoundError("Post not found")
        return post

    def _hidden_authors(self, viewer_id: int | None) -> set[int]:
        if viewer_id is None:
            return set()
        return self.relationships.blocked_ids_involving(viewer_id)

    # --- Reads --------------------------------------------------------------------

    def get_post_comments(
        self,
        post_id: int,
        viewer_id: int | None = None,
        page: int = 1,
        limit: int = 10,
        replies_limit: int | None = None,
    ) -> Page[CommentWithReplies]:
        """Return a page of top-level comments, each with its first replies.

        Exactly two comment queries run regardless of page size or reply
        counts: one for the page and one for every reply of that page.

        Args:
            post_id: Post whose comments to read.
            viewer_id: Authenticated viewer, or ``None`` for anonymous.
            page: 1-based page of top-level comments, newest first.
            limit: Top-level comments per page.
            replies_limit: Replies attached to each comment, oldest first.

        Raises:
            NotFoundError: If the post is missing, deleted, or hidden from the viewer.
            ValidationError: For bad pagination or reply limits.
        """
        page, limit, skip = normalize_pagination(page, limit)
        if replies_limit is None:
            replies_limit = settings.default_replies_limit
        if replies_limit < 0 or replies_limit > settings.max_page_size:
            raise ValidationError(f"repliesLimit must be between 0 and {settings.max_page_size}")
        self._visible_post(post_id, viewer_id)
        hidden = self._hidden_authors(viewer_id)

        top_filter = CommentFilter(post_id=post_id, top_level_only=True, exclude_author_ids=hidden)
        top_level = self.comments.find_comments(
            top_filter, "newest", skip, limit, viewer_id=viewer_id
        )
        total = self.comments.count_comments(top_filter)

        parent_ids = [record.comment.id for record in top_level]
        replies = self.comments.find_comments(
            CommentFilter(post_id=post_id, parent_ids=parent_ids, exclude_author_ids=hidden),
            "oldest",
            viewer_id=viewer_id,
        )
        by_parent: dict[int, list[CommentRecord]] = defaultdict(list)
        for reply in replies:
            if reply.comment.parent_id is not None:
                by_parent[reply.comment.parent_id].append(reply)

        items = []
        for record in top_level:
            children = by_parent.get(record.comment.id, [])
            items.append(
                CommentWithReplies(
                    **to_comment_view(record).model_dump(),
                    replies=[to_comment_view(child) for child in children[:replies_limit]],
                    replies_count=len(children),
                    has_more_replies=len(children) > replies_limit,
                )
            )
        return build_page(items, total, page, limit)

    def _visible_comment(self, comment_id: int, viewer_id: int | None) -> Comment:
        comment = self.comments.get_by_id(comment_id)
        if comment is None:
            raise NotFoundError(COMMENT_NOT_FOUND)
        self._visible_post(comment.post_id, viewer_id)
        if viewer_id is not None and comment.author_id in self._hidden_authors(viewer_id):
            raise NotFoundError(COMMENT_NOT_FOUND)
        return comment

    def get_comment_replies(
        self,
        comment_id: int,
        viewer_id: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[CommentView]:
        """Return one page of a comment's direct replies, oldest first."""
        page, limit, skip = normalize_pagination(page, limit)
        comment = self._visible_comment(comment_id, viewer_id)
        flt = CommentFilter(
            post_id=comment.post_id,
            parent_ids=[comment.id],
            exclude_author_ids=self._hidden_authors(viewer_id),
        )
        replies = self.comments.find_comments(flt, "oldest", skip, limit, viewer_id=viewer_id)
        total = self.comments.count_comments(flt)
        return build_page([to_comment_view(r) for r in replies], total, page, limit)

    def get_comment_thread(
        self,
        comment_id: int,
        viewer_id: int | None = None,
        max_depth: int | None = None,
    ) -> CommentThreadNode:
        """Return a comment and its replies down to ``max_depth`` levels.

        One query runs per level, capped by ``MAX_REPLY_DEPTH``. Nodes on the
        last level carry ``replies_count`` but no ``replies``.
        """
        depth_limit = settings.max_reply_depth if max_depth is None else max_depth
        if depth_limit < 0 or depth_limit > settings.max_reply_depth:
            raise ValidationError(f"maxDepth must be between 0 and {settings.max_reply_depth}")
        comment = self._visible_comment(comment_id, viewer_id)
        hidden = self._hidden_authors(viewer_id)

        root_record = self.comments.find_comments(
            CommentFilter(ids=[comment.id]), viewer_id=viewer_id
        )[0]
        root = CommentThreadNode(**to_comment_view(root_record).model_dump(), depth=0)
        level: dict[int, CommentThreadNode] = {root.id: root}
        for depth in range(1, depth_limit + 1):
            children = self.comments.find_comments(
                CommentFilter(parent_ids=list(level), exclude_author_ids=hidden),
                "oldest",
                viewer_id=viewer_id,
            )
            next_level: dict[int, CommentThreadNode] = {}
            for child in children:
                node = CommentThreadNode(**to_comment_view(child).model_dump(), depth=depth)
                parent = level.get(child.comment.parent_id or 0)
                if parent is None:
                    continue
                parent.replies.append(node)
                parent.replies_count += 1
                next_level[node.id] = node
            if not next_level:
                return root
            level = next_level

        counts = self.comments.count_replies_by_parent(list(level), exclude_author_ids=hidden)
        for node_id, node in level.items():
            node.replies_count = counts.get(node_id, 0)
        return root

    # --- Writes -------------------------------------------------------------------

    def create_comment(
        self,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: int | None = None,
    ) -> CommentView:
        """Add a comment or reply to a post the author can see."""
        text = clean_comment_content(content)
        author = self.users.get_active(author_id)
        if author is None:
            raise NotFoundError("User not found")
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if author_id != post.author_id and self.relationships.is_blocked(author_id, post.author_id):
            raise ForbiddenError("You cannot comment on this post")
        self._visible_post(post_id, author_id)

        parent: Comment | None = None
        if parent_id is not None:
            parent = self.comments.get_by_id(parent_id)
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.post_id != post_id:
                raise ValidationError("Parent comment belongs to a different post")
            if parent.author_id != author_id and self.relationships.is_blocked(
                author_id, parent.author_id
            ):
                raise ForbiddenError("You cannot comment on this post")

        comment = self.comments.create(
            post_id=post_id, author_id=author_id, content=text, parent_id=parent_id
        )
        self.session.commit()
        self.policy.engagement_changed(post_id)
        logger.info("Comment %s added to post %s by user %s", comment.id, post_id, author_id)

        if parent is not None:
            self.notifications.notify_comment_reply(parent.author_id, author_id, author.username)
        else:
            self.notifications.notify_post_comment(post.author_id, author_id, author.username)
        return self._view(comment.id, author_id)

    def _view(self, comment_id: int, viewer_id: int | None) -> CommentView:
        records = self.comments.find_comments(CommentFilter(ids=[comment_id]), viewer_id=viewer_id)
        if not records:
            raise NotFoundError(COMMENT_NOT_FOUND)
        return to_comment_view(records[0])

    def _get_owned(self, comment_id: int, user_id: int) -> Comment:
        comment = self.comments.get_by_id(comment_id)
        if comment is None:
            raise NotFoundError(COMMENT_NOT_FOUND)
        if comment.author_id != user_id:
            raise ForbiddenError("You can only modify your own comments")
        return comment

    def update_comment(self, comment_id: int, user_id: int, content: str) -> CommentView:
        text = clean_comment_content(content)
        comment = self._get_owned(comment_id, user_id)
        self.comments.update(comment, content=text)
        self.session.commit()
        return self._view(comment.id, user_id)

    def delete_comment(self, comment_id: int, user_id: int) -> None:
        """Soft-delete the caller's own comment."""
        comment = self._get_owned(comment_id, user_id)
        self.comments.soft_delete(comment)
        self.session.commit()
        self.policy.engagement_changed(comment.post_id)
        logger.info("Comment %s deleted by user %s", comment_id, user_id)
