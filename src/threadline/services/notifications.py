"""Persisted notifications and the push hand-off.

Real-time delivery is owned by an external presence service; the engine only
sees the :class:`Notifier` interface. Notification failures are logged and
never surface in the write that triggered them.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from threadline.core.errors import NotFoundError
from threadline.models import Notification
from threadline.models.notification import (
    NOTIFICATION_COMMENT_REPLY,
    NOTIFICATION_NEW_FOLLOWER,
    NOTIFICATION_POST_COMMENT,
    NOTIFICATION_POST_LIKE,
)
from threadline.repositories.notification_repo import NotificationRepository
from threadline.schemas.common import build_page, normalize_pagination
from threadline.schemas.notification import NotificationPage, NotificationView

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers a payload to a user's live connections, if any."""

    def notify(self, user_id: int, payload: dict[str, Any]) -> None: ...


class LoggingNotifier:
    """Default notifier used when no push transport is configured."""

    def notify(self, user_id: int, payload: dict[str, Any]) -> None:
        logger.info(
            "notification for user %s: %s",
            user_id,
            payload.get("type"),
            extra={"user_id": user_id, "notification_id": payload.get("id")},
        )


_notifier: Notifier = LoggingNotifier()


def get_notifier() -> Notifier:
    return _notifier


def set_notifier(notifier: Notifier) -> None:
    """Install the process-wide push transport."""
    global _notifier
    _notifier = notifier


class NotificationService:
    """Create, list and acknowledge notifications for a user."""

    def __init__(self, session: Session, notifier: Notifier | None = None) -> None:
        self.session = session
        self.repo = NotificationRepository(session)
        self.notifier = notifier or get_notifier()

    def create_and_emit(self, user_id: int, type_: str, message: str) -> Notification | None:
        """Persist a notification and hand it to the notifier.

        Returns:
            The stored notification, or ``None`` if storing it failed.
        """
        try:
            notification = self.repo.create(user_id=user_id, type_=type_, message=message)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to store %s notification for user %s", type_, user_id)
            return None

        payload = NotificationView.model_validate(notification).model_dump(
            mode="json", by_alias=True
        )
        try:
            self.notifier.notify(user_id, payload)
        except Exception:
            logger.exception("Failed to deliver notification %s", notification.id)
        logger.debug("Notification %s created for user %s", type_, user_id)
        return notification

    def _emit_unless_self(
        self, recipient_id: int, actor_id: int, type_: str, message: str
    ) -> Notification | None:
        if recipient_id == actor_id:
            return None
        return self.create_and_emit(recipient_id, type_, message)

    def notify_new_follower(
        self, following_id: int, follower_id: int, follower_username: str
    ) -> Notification | None:
        return self._emit_unless_self(
            following_id,
            follower_id,
            NOTIFICATION_NEW_FOLLOWER,
            f"{follower_username} started following you",
        )

    def notify_post_like(
        self, post_author_id: int, liker_id: int, liker_username: str
    ) -> Notification | None:
        return self._emit_unless_self(
            post_author_id, liker_id, NOTIFICATION_POST_LIKE, f"{liker_username} liked your post"
        )

    def notify_post_comment(
        self, post_author_id: int, commenter_id: int, commenter_username: str
    ) -> Notification | None:
        return self._emit_unless_self(
            post_author_id,
            commenter_id,
            NOTIFICATION_POST_COMMENT,
            f"{commenter_username} commented on your post",
        )

    def notify_comment_reply(
        self, comment_author_id: int, replier_id: int, replier_username: str
    ) -> Notification | None:
        return self._emit_unless_self(
            comment_author_id,
            replier_id,
            NOTIFICATION_COMMENT_REPLY,
            f"{replier_username} replied to your comment",
        )

    def get_user_notifications(
        self, user_id: int, page: int = 1, limit: int = 20, unread_only: bool = False
    ) -> NotificationPage:
        """Return one page of notifications, newest first, plus the unread total."""
        page, limit, skip = normalize_pagination(page, limit)
        rows = self.repo.find(user_id, unread_only=unread_only, skip=skip, take=limit)
        total = self.repo.count(user_id, unread_only=unread_only)
        base = build_page([NotificationView.model_validate(n) for n in rows], total, page, limit)
        return NotificationPage(
            **base.model_dump(exclude={"data"}),
            data=base.data,
            unread_count=self.repo.count(user_id, unread_only=True),
        )

    def get_unread_count(self, user_id: int) -> int:
        return self.repo.count(user_id, unread_only=True)

    def _get_owned(self, notification_id: int, user_id: int) -> Notification:
        notification = self.repo.get_for_user(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    def mark_as_read(self, notification_id: int, user_id: int) -> None:
        self.repo.mark_read(self._get_owned(notification_id, user_id))
        self.session.commit()

    def mark_all_as_read(self, user_id: int) -> int:
        updated = self.repo.mark_all_read(user_id)
        self.session.commit()
        return updated

    def delete_notification(self, notification_id: int, user_id: int) -> None:
        self.repo.delete(self._get_owned(notification_id, user_id))
        self.session.commit()
