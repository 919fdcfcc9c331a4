"""Data access for persisted notifications."""
from __future__ import annotations

from sqlalchemy import ColumnElement, delete, func, select, update
from sqlalchemy.orm import Session

from threadline.models import Notification

__all__ = ["NotificationRepository"]


class NotificationRepository:
    """Thin wrapper around the notification table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, *, user_id: int, type_: str, message: str) -> Notification:
        notification = Notification(user_id=user_id, type=type_, message=message)
        self.session.add(notification)
        self.session.flush()
        return notification

    @staticmethod
    def _clauses(user_id: int, unread_only: bool) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = [Notification.user_id == user_id]
        if unread_only:
            clauses.append(Notification.is_read.is_(False))
        return clauses

    def find(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        skip: int = 0,
        take: int | None = None,
    ) -> list[Notification]:
        """Return a user's notifications, newest first."""
        stmt = (
            select(Notification)
            .where(*self._clauses(user_id, unread_only))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(skip)
        )
        if take is not None:
            stmt = stmt.limit(take)
        return list(self.session.execute(stmt).scalars())

    def count(self, user_id: int, *, unread_only: bool = False) -> int:
        stmt = select(func.count(Notification.id)).where(*self._clauses(user_id, unread_only))
        return int(self.session.execute(stmt).scalar_one())

    def get_for_user(self, notification_id: int, user_id: int) -> Notification | None:
        """Return the notification only if it is addressed to ``user_id``."""
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        return self.session.execute(stmt).scalars().first()

    def mark_read(self, notification: Notification) -> Notification:
        notification.is_read = True
        self.session.flush()
        return notification

    def mark_all_read(self, user_id: int) -> int:
        result = self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        return int(result.rowcount or 0)

    def delete(self, notification: Notification) -> None:
        self.session.execute(delete(Notification).where(Notification.id == notification.id))
