"""Data access for likes on posts and comments."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import ColumnElement, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from threadline.core.errors import ConflictError
from threadline.models import Like

__all__ = ["LikeRepository", "LikeTarget"]


@dataclass(frozen=True)
class LikeTarget:
    """Exactly one of ``post_id`` or ``comment_id``."""

    post_id: int | None = None
    comment_id: int | None = None

    def __post_init__(self) -> None:
        if (self.post_id is None) == (self.comment_id is None):
            raise ValueError("A like targets exactly one post or comment")

    @classmethod
    def post(cls, post_id: int) -> LikeTarget:
        return cls(post_id=post_id)

    @classmethod
    def comment(cls, comment_id: int) -> LikeTarget:
        return cls(comment_id=comment_id)

    def clause(self) -> ColumnElement[bool]:
        if self.post_id is not None:
            return Like.post_id == self.post_id
        return Like.comment_id == self.comment_id


class LikeRepository:
    """Thin wrapper around the like table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_like_existence(self, user_id: int, target: LikeTarget) -> bool:
        """Return True if ``user_id`` has liked ``target``."""
        stmt = select(Like.id).where(Like.user_id == user_id, target.clause()).limit(1)
        return self.session.execute(stmt).first() is not None

    def create(self, user_id: int, target: LikeTarget) -> Like:
        """Insert a like.

        Raises:
            ConflictError: If the user already liked the target.
        """
        like = Like(user_id=user_id, post_id=target.post_id, comment_id=target.comment_id)
        try:
            with self.session.begin_nested():
                self.session.add(like)
        except IntegrityError as err:
            raise ConflictError("Already liked") from err
        return like

    def delete(self, user_id: int, target: LikeTarget) -> bool:
        """Remove a like; return False when there was nothing to remove."""
        result = self.session.execute(
            delete(Like).where(Like.user_id == user_id, target.clause())
        )
        return bool(result.rowcount)

    def delete_by_user(self, user_id: int) -> int:
        result = self.session.execute(delete(Like).where(Like.user_id == user_id))
        return int(result.rowcount or 0)
