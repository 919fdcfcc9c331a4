"""Notification inbox endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from threadline.api.v1.dependencies import CurrentUserDep, NotificationServiceDep
from threadline.schemas.common import MessageResponse
from threadline.schemas.notification import NotificationPage, UnreadCount

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationPage)
def list_notifications(
    current_user: CurrentUserDep,
    notifications: NotificationServiceDep,
    page: int = 1,
    limit: int = 20,
    unread_only: Annotated[bool, Query(alias="unreadOnly")] = False,
) -> NotificationPage:
    return notifications.get_user_notifications(current_user.id, page, limit, unread_only)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    current_user: CurrentUserDep,
    notifications: NotificationServiceDep,
) -> UnreadCount:
    return UnreadCount(count=notifications.get_unread_count(current_user.id))


@router.put("/read-all", response_model=MessageResponse)
def mark_all_read(
    current_user: CurrentUserDep,
    notifications: NotificationServiceDep,
) -> MessageResponse:
    updated = notifications.mark_all_as_read(current_user.id)
    return MessageResponse(message=f"{updated} notifications marked as read")


@router.put("/{notification_id}/read", response_model=MessageResponse)
def mark_read(
    notification_id: int,
    current_user: CurrentUserDep,
    notifications: NotificationServiceDep,
) -> MessageResponse:
    notifications.mark_as_read(notification_id, current_user.id)
    return MessageResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: int,
    current_user: CurrentUserDep,
    notifications: NotificationServiceDep,
) -> MessageResponse:
    notifications.delete_notification(notification_id, current_user.id)
    return MessageResponse(message="Notification deleted")
