"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from sqlalchemy import ColumnElement, case, exists, false, func, literal, or_, select, update
from sqlalchemy.orm import Session

from threadline.db.time import utcnow
from threadline.models import Comment, Follow, Like, Post, User
from threadline.models.post import VISIBILITY_FRIENDS
from threadline.repositories._sql import icontains

__all__ = ["PostFilter", "PostOrder", "PostRecord", "PostRepository"]

PostOrder = Literal["newest", "oldest", "popular", "relevance"]


@dataclass(frozen=True)
class PostFilter:
    """Conjunctive predicates applied to post queries.

    ``None`` means "do not constrain on this field".
    """

    ids: Collection[int] | None = None
    author_ids: Collection[int] | None = None
    exclude_author_ids: Collection[int] | None = None
    visibilities: Collection[str] | None = None
    include_deleted: bool = False
    created_after: datetime | None = None
    created_before: datetime | None = None
    # Friends posts only match when this user wrote them or follows their author.
    friends_of: int | None = None
    # Substring matched against content or the author's username.
    search: str | None = None
    min_likes: int | None = None
    min_comments: int | None = None


@dataclass(frozen=True)
class PostRecord:
    """A post plus the viewer-independent counts and the viewer's like flag."""

    post: Post
    like_count: int
    comment_count: int
    is_liked: bool


def _like_count() -> Any:
    return (
        select(func.count(Like.id))
        .where(Like.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def _comment_count() -> Any:
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id, Comment.is_deleted.is_(False))
        .correlate(Post)
        .scalar_subquery()
    )


def _liked_by(viewer_id: int | None) -> ColumnElement[bool]:
    if viewer_id is None:
        return literal(False)
    return exists().where(Like.post_id == Post.id, Like.user_id == viewer_id)


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int, *, include_deleted: bool = False) -> Post | None:
        """Return a post by identifier."""
        stmt = select(Post).where(Post.id == post_id)
        if not include_deleted:
            stmt = stmt.where(Post.is_deleted.is_(False))
        return self.session.execute(stmt).scalars().first()

    def get_view(self, post_id: int, viewer_id: int | None) -> PostRecord | None:
        """Return one non-deleted post with counts and the viewer's like flag."""
        records = self.find_posts(PostFilter(ids=[post_id]), viewer_id=viewer_id, take=1)
        return records[0] if records else None

    def _clauses(self, flt: PostFilter) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if not flt.include_deleted:
            clauses.append(Post.is_deleted.is_(False))
        if flt.ids is not None:
            clauses.append(Post.id.in_(list(flt.ids)) if flt.ids else false())
        if flt.author_ids is not None:
            clauses.append(Post.author_id.in_(list(flt.author_ids)) if flt.author_ids else false())
        if flt.exclude_author_ids:
            clauses.append(Post.author_id.not_in(list(flt.exclude_author_ids)))
        if flt.visibilities is not None:
            clauses.append(
                Post.visibility.in_(list(flt.visibilities)) if flt.visibilities else false()
            )
        if flt.created_after is not None:
            clauses.append(Post.created_at >= flt.created_after)
        if flt.created_before is not None:
            clauses.append(Post.created_at <= flt.created_before)
        if flt.friends_of is not None:
            followed = select(Follow.following_id).where(Follow.follower_id == flt.friends_of)
            clauses.append(
                or_(
                    Post.visibility != VISIBILITY_FRIENDS,
                    Post.author_id == flt.friends_of,
                    Post.author_id.in_(followed),
                )
            )
        if flt.search:
            author_match = select(User.id).where(icontains(User.username, flt.search))
            clauses.append(
                or_(icontains(Post.content, flt.search), Post.author_id.in_(author_match))
            )
        if flt.min_likes is not None:
            clauses.append(_like_count() >= flt.min_likes)
        if flt.min_comments is not None:
            clauses.append(_comment_count() >= flt.min_comments)
        return clauses

    @staticmethod
    def _order_by(order: PostOrder, search: str | None) -> list[Any]:
        if order == "oldest":
            return [Post.created_at.asc(), Post.id.asc()]
        if order == "popular":
            engagement = _like_count() + _comment_count()
            return [engagement.desc(), Post.created_at.desc(), Post.id.desc()]
        if order == "relevance" and search:
            # Content matches rank above author-only matches.
            content_rank = case((icontains(Post.content, search), 0), else_=1)
            return [content_rank.asc(), Post.created_at.desc(), Post.id.desc()]
        return [Post.created_at.desc(), Post.id.desc()]

    def find_posts(
        self,
        flt: PostFilter,
        order: PostOrder = "newest",
        skip: int = 0,
        take: int | None = None,
        *,
        viewer_id: int | None = None,
    ) -> list[PostRecord]:
        """Return posts matching ``flt`` with derived counts, in a single statement."""
        like_count = _like_count().label("like_count")
        comment_count = _comment_count().label("comment_count")
        is_liked = _liked_by(viewer_id).label("is_liked")
        stmt = (
            select(Post, like_count, comment_count, is_liked)
            .where(*self._clauses(flt))
            .order_by(*self._order_by(order, flt.search))
        )
        if skip:
            stmt = stmt.offset(skip)
        if take is not None:
            stmt = stmt.limit(take)
        rows = self.session.execute(stmt).unique().all()
        return [
            PostRecord(
                post=row[0],
                like_count=int(row.like_count or 0),
                comment_count=int(row.comment_count or 0),
                is_liked=bool(row.is_liked),
            )
            for row in rows
        ]

    def count_posts(self, flt: PostFilter) -> int:
        """Return the number of posts matching ``flt``."""
        stmt = select(func.count(Post.id)).where(*self._clauses(flt))
        return int(self.session.execute(stmt).scalar_one())

    def find_posts_by_ids(
        self, post_ids: Sequence[int], *, viewer_id: int | None = None
    ) -> dict[int, PostRecord]:
        """Return non-deleted posts keyed by id; missing ids are simply absent."""
        records = self.find_posts(PostFilter(ids=post_ids), viewer_id=viewer_id)
        return {record.post.id: record for record in records}

    def create(
        self,
        *,
        author_id: int,
        content: str,
        media_urls: list[str],
        visibility: str,
    ) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(
            author_id=author_id,
            content=content,
            media_urls=media_urls,
            visibility=visibility,
        )
        self.session.add(post)
        self.session.flush()
        return post

    def update(self, post: Post, **changes: Any) -> Post:
        """Apply column changes to ``post`` and flush."""
        for name, value in changes.items():
            setattr(post, name, value)
        self.session.flush()
        return post

    def soft_delete(self, post: Post) -> Post:
        """Mark a post deleted without removing the row."""
        post.is_deleted = True
        post.deleted_at = utcnow()
        self.session.flush()
        return post

    def ids_by_author(self, author_id: int) -> list[int]:
        """Return the ids of every live post by ``author_id``."""
        stmt = select(Post.id).where(Post.author_id == author_id, Post.is_deleted.is_(False))
        return list(self.session.execute(stmt).scalars())

    def soft_delete_by_author(self, author_id: int) -> int:
        """Soft-delete every live post owned by ``author_id``; return the row count."""
        result = self.session.execute(
            update(Post)
            .where(Post.author_id == author_id, Post.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=utcnow())
        )
        return int(result.rowcount or 0)
