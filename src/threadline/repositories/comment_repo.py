"""Data access helpers for comments and replies."""
from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import ColumnElement, exists, false, func, literal, select, update
from sqlalchemy.orm import Session

from threadline.db.time import utcnow
from threadline.models import Comment, Like

__all__ = ["CommentFilter", "CommentOrder", "CommentRecord", "CommentRepository"]

CommentOrder = Literal["newest", "oldest"]


@dataclass(frozen=True)
class CommentFilter:
    """Conjunctive predicates applied to comment queries."""

    post_id: int | None = None
    ids: Collection[int] | None = None
    parent_ids: Collection[int] | None = None
    top_level_only: bool = False
    author_id: int | None = None
    exclude_author_ids: Collection[int] | None = None
    include_deleted: bool = False


@dataclass(frozen=True)
class CommentRecord:
    comment: Comment
    like_count: int
    is_liked: bool


class CommentRepository:
    """Thin wrapper around database access for comment entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, comment_id: int, *, include_deleted: bool = False) -> Comment | None:
        """Return a comment by identifier."""
        stmt = select(Comment).where(Comment.id == comment_id)
        if not include_deleted:
            stmt = stmt.where(Comment.is_deleted.is_(False))
        return self.session.execute(stmt).scalars().first()

    @staticmethod
    def _clauses(flt: CommentFilter) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if not flt.include_deleted:
            clauses.append(Comment.is_deleted.is_(False))
        if flt.post_id is not None:
            clauses.append(Comment.post_id == flt.post_id)
        if flt.ids is not None:
            clauses.append(Comment.id.in_(list(flt.ids)) if flt.ids else false())
        if flt.parent_ids is not None:
            clauses.append(
                Comment.parent_id.in_(list(flt.parent_ids)) if flt.parent_ids else false()
            )
        if flt.top_level_only:
            clauses.append(Comment.parent_id.is_(None))
        if flt.author_id is not None:
            clauses.append(Comment.author_id == flt.author_id)
        if flt.exclude_author_ids:
            clauses.append(Comment.author_id.not_in(list(flt.exclude_author_ids)))
        return clauses

    def find_comments(
        self,
        flt: CommentFilter,
        order: CommentOrder = "newest",
        skip: int = 0,
        take: int | None = None,
        *,
        viewer_id: int | None = None,
    ) -> list[CommentRecord]:
        """Return comments matching ``flt`` with like counts, in a single statement.

        Args:
            flt: Predicates to apply.
            order: ``newest`` or ``oldest`` by creation time.
            skip: Rows to skip.
            take: Maximum rows to return, or ``None`` for all.
            viewer_id: When set, each record carries the viewer's like flag.

        Returns:
            The matching comments with their authors eagerly loaded.
        """
        like_count = (
            select(func.count(Like.id))
            .where(Like.comment_id == Comment.id)
            .correlate(Comment)
            .scalar_subquery()
            .label("like_count")
        )
        liked: Any = (
            literal(False)
            if viewer_id is None
            else exists().where(Like.comment_id == Comment.id, Like.user_id == viewer_id)
        )
        if order == "oldest":
            ordering = [Comment.created_at.asc(), Comment.id.asc()]
        else:
            ordering = [Comment.created_at.desc(), Comment.id.desc()]
        stmt = (
            select(Comment, like_count, liked.label("is_liked"))
            .where(*self._clauses(flt))
            .order_by(*ordering)
        )
        if skip:
            stmt = stmt.offset(skip)
        if take is not None:
            stmt = stmt.limit(take)
        rows = self.session.execute(stmt).unique().all()
        return [
            CommentRecord(
                comment=row[0],
                like_count=int(row.like_count or 0),
                is_liked=bool(row.is_liked),
            )
            for row in rows
        ]

    def count_comments(self, flt: CommentFilter) -> int:
        stmt = select(func.count(Comment.id)).where(*self._clauses(flt))
        return int(self.session.execute(stmt).scalar_one())

    def count_replies_by_parent(
        self, parent_ids: Collection[int], *, exclude_author_ids: Collection[int] | None = None
    ) -> dict[int, int]:
        """Return the number of live direct replies for each of ``parent_ids``."""
        if not parent_ids:
            return {}
        stmt = (
            select(Comment.parent_id, func.count(Comment.id))
            .where(
                *self._clauses(
                    CommentFilter(parent_ids=parent_ids, exclude_author_ids=exclude_author_ids)
                )
            )
            .group_by(Comment.parent_id)
        )
        return {int(parent_id): int(total) for parent_id, total in self.session.execute(stmt)}

    def create(
        self,
        *,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: int | None = None,
    ) -> Comment:
        """Insert a new comment and return the persisted ORM instance."""
        comment = Comment(
            post_id=post_id,
            author_id=author_id,
            content=content,
            parent_id=parent_id,
        )
        self.session.add(comment)
        self.session.flush()
        return comment

    def update(self, comment: Comment, *, content: str) -> Comment:
        comment.content = content
        self.session.flush()
        return comment

    def soft_delete(self, comment: Comment) -> Comment:
        """Mark a comment deleted; its replies stay attached to the tree."""
        comment.is_deleted = True
        comment.deleted_at = utcnow()
        self.session.flush()
        return comment

    def soft_delete_by_author(self, author_id: int) -> int:
        result = self.session.execute(
            update(Comment)
            .where(Comment.author_id == author_id, Comment.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=utcnow())
        )
        return int(result.rowcount or 0)
