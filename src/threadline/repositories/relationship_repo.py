"""Data access for follow and block edges."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from threadline.core.errors import ConflictError
from threadline.models import Block, Follow, User

__all__ = ["EdgeFilter", "RelationshipRepository"]


@dataclass(frozen=True)
class EdgeFilter:
    """Selects follow edges pointing at or away from one user.

    ``direction="followers"`` returns edges whose followee is ``user_id``;
    ``direction="following"`` returns edges whose follower is ``user_id``.
    Edges to closed or deactivated accounts are never returned.
    """

    user_id: int
    direction: Literal["followers", "following"]


class RelationshipRepository:
    """Thin wrapper around the follow and block tables."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Blocks

    def is_blocked(self, a: int, b: int) -> bool:
        """Return True if a block edge exists between ``a`` and ``b`` in either direction."""
        stmt = select(Block.blocker_id).where(
            or_(
                and_(Block.blocker_id == a, Block.blocked_id == b),
                and_(Block.blocker_id == b, Block.blocked_id == a),
            )
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def has_blocked(self, blocker_id: int, blocked_id: int) -> bool:
        """Return True if ``blocker_id`` itself blocked ``blocked_id``."""
        stmt = select(Block.blocker_id).where(
            Block.blocker_id == blocker_id, Block.blocked_id == blocked_id
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def blocked_ids_involving(self, user_id: int) -> set[int]:
        """Return every user that blocked ``user_id`` or was blocked by them."""
        stmt = select(Block.blocker_id, Block.blocked_id).where(
            or_(Block.blocker_id == user_id, Block.blocked_id == user_id)
        )
        blocked: set[int] = set()
        for blocker_id, blocked_id in self.session.execute(stmt):
            blocked.add(blocked_id if blocker_id == user_id else blocker_id)
        return blocked

    def find_block_edges(
        self, blocker_id: int, skip: int = 0, take: int | None = None
    ) -> list[tuple[Block, User]]:
        """Return blocks created by ``blocker_id`` with the blocked account, newest first."""
        stmt = (
            select(Block, User)
            .join(User, User.id == Block.blocked_id)
            .where(Block.blocker_id == blocker_id)
            .order_by(Block.created_at.desc(), Block.blocked_id.desc())
            .offset(skip)
        )
        if take is not None:
            stmt = stmt.limit(take)
        return [(row[0], row[1]) for row in self.session.execute(stmt)]

    def count_block_edges(self, blocker_id: int) -> int:
        stmt = select(func.count()).select_from(Block).where(Block.blocker_id == blocker_id)
        return int(self.session.execute(stmt).scalar_one())

    def create_block(self, blocker_id: int, blocked_id: int) -> Block:
        """Insert a block edge.

        Raises:
            ConflictError: If the edge already exists.
        """
        block = Block(blocker_id=blocker_id, blocked_id=blocked_id)
        self._insert(block, "User is already blocked")
        return block

    def delete_block(self, blocker_id: int, blocked_id: int) -> bool:
        """Remove a block edge; return False when no such edge existed."""
        result = self.session.execute(
            delete(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
        )
        return bool(result.rowcount)

    # Follows

    def is_following(self, follower_id: int, following_id: int) -> bool:
        stmt = select(Follow.follower_id).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def following_ids(self, user_id: int) -> set[int]:
        """Return the ids ``user_id`` follows."""
        stmt = select(Follow.following_id).where(Follow.follower_id == user_id)
        return set(self.session.execute(stmt).scalars())

    def _edge_query(self, flt: EdgeFilter) -> Select[tuple[Follow, User]]:
        if flt.direction == "followers":
            other, own = Follow.follower_id, Follow.following_id
        else:
            other, own = Follow.following_id, Follow.follower_id
        return (
            select(Follow, User)
            .join(User, User.id == other)
            .where(own == flt.user_id, User.deleted_at.is_(None), User.is_active.is_(True))
        )

    def find_follow_edges(
        self, flt: EdgeFilter, skip: int = 0, take: int | None = None
    ) -> list[tuple[Follow, User]]:
        """Return follow edges with the account on the other end, newest first."""
        stmt = (
            self._edge_query(flt)
            .order_by(Follow.created_at.desc(), User.id.desc())
            .offset(skip)
        )
        if take is not None:
            stmt = stmt.limit(take)
        return [(row[0], row[1]) for row in self.session.execute(stmt)]

    def count_follow_edges(self, flt: EdgeFilter) -> int:
        stmt = select(func.count()).select_from(self._edge_query(flt).subquery())
        return int(self.session.execute(stmt).scalar_one())

    def create_follow(self, follower_id: int, following_id: int) -> Follow:
        """Insert a follow edge.

        Raises:
            ConflictError: If the edge already exists.
        """
        follow = Follow(follower_id=follower_id, following_id=following_id)
        self._insert(follow, "You are already following this user")
        return follow

    def delete_follow(self, follower_id: int, following_id: int) -> bool:
        """Remove a follow edge; return False when no such edge existed."""
        result = self.session.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
        return bool(result.rowcount)

    def delete_edges_involving(self, user_id: int) -> tuple[int, int]:
        """Hard-delete follow and block edges in both directions.

        Returns:
            The number of follow rows and block rows removed.
        """
        follows = self.session.execute(
            delete(Follow).where(
                or_(Follow.follower_id == user_id, Follow.following_id == user_id)
            )
        )
        blocks = self.session.execute(
            delete(Block).where(or_(Block.blocker_id == user_id, Block.blocked_id == user_id))
        )
        return int(follows.rowcount or 0), int(blocks.rowcount or 0)

    def _insert(self, row: Follow | Block, conflict_message: str) -> None:
        # A duplicate rolls back only this savepoint.
        try:
            with self.session.begin_nested():
                self.session.add(row)
        except IntegrityError as err:
            raise ConflictError(conflict_message) from err
