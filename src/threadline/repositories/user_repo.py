"""Data access helpers for user accounts."""
from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import ColumnElement, case, func, or_, select
from sqlalchemy.orm import Session

from threadline.db.time import utcnow
from threadline.models import User
from threadline.repositories._sql import icontains, istartswith

__all__ = ["UserFilter", "UserOrder", "UserRepository"]

UserOrder = Literal["relevance", "username", "newest", "oldest"]


@dataclass(frozen=True)
class UserFilter:
    search: str | None = None
    exclude_ids: frozenset[int] = frozenset()
    verified_only: bool = False
    has_bio: bool = False


class UserRepository:
    """Thin wrapper around database access for user accounts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, user_id: int) -> User | None:
        """Return a user by id regardless of lifecycle state."""
        return self.session.get(User, user_id)

    def get_active(self, user_id: int) -> User | None:
        """Return a user only if the account is open and active."""
        stmt = select(User).where(
            User.id == user_id,
            User.deleted_at.is_(None),
            User.is_active.is_(True),
        )
        return self.session.execute(stmt).scalars().first()

    def get_active_many(self, user_ids: Collection[int]) -> list[User]:
        """Return the open accounts among ``user_ids`` in one query."""
        if not user_ids:
            return []
        stmt = select(User).where(
            User.id.in_(list(user_ids)),
            User.deleted_at.is_(None),
            User.is_active.is_(True),
        )
        return list(self.session.execute(stmt).scalars())

    @staticmethod
    def _clauses(flt: UserFilter) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = [
            User.deleted_at.is_(None),
            User.is_active.is_(True),
        ]
        if flt.search:
            clauses.append(
                or_(
                    icontains(User.username, flt.search),
                    icontains(User.first_name, flt.search),
                    icontains(User.last_name, flt.search),
                    icontains(User.email, flt.search),
                )
            )
        if flt.exclude_ids:
            clauses.append(User.id.not_in(sorted(flt.exclude_ids)))
        if flt.verified_only:
            clauses.append(User.is_email_verified.is_(True))
        if flt.has_bio:
            clauses.append(User.bio.is_not(None))
            clauses.append(User.bio != "")
        return clauses

    @staticmethod
    def _order_by(order: UserOrder, search: str | None) -> list[Any]:
        if order == "username":
            return [User.username.asc()]
        if order == "newest":
            return [User.created_at.desc(), User.id.desc()]
        if order == "oldest":
            return [User.created_at.asc(), User.id.asc()]
        ordering: list[Any] = []
        if search:
            # Exact username, then username prefix, then verified, then alphabetical.
            ordering.append(case((func.lower(User.username) == search.lower(), 0), else_=1))
            ordering.append(case((istartswith(User.username, search), 0), else_=1))
        ordering.extend([User.is_email_verified.desc(), User.username.asc()])
        return ordering

    def search(
        self,
        flt: UserFilter,
        order: UserOrder = "relevance",
        skip: int = 0,
        take: int | None = None,
    ) -> list[User]:
        """Return open accounts matching ``flt`` in the requested order."""
        stmt = (
            select(User)
            .where(*self._clauses(flt))
            .order_by(*self._order_by(order, flt.search))
            .offset(skip)
        )
        if take is not None:
            stmt = stmt.limit(take)
        return list(self.session.execute(stmt).scalars())

    def count(self, flt: UserFilter) -> int:
        stmt = select(func.count(User.id)).where(*self._clauses(flt))
        return int(self.session.execute(stmt).scalar_one())

    def update(self, user: User, **changes: Any) -> User:
        for name, value in changes.items():
            setattr(user, name, value)
        self.session.flush()
        return user

    def deactivate(self, user: User) -> User:
        """Close the account: it stops appearing in every read path."""
        user.is_active = False
        user.deleted_at = utcnow()
        self.session.flush()
        return user
