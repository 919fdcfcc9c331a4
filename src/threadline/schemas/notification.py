"""Notification schemas."""
from __future__ import annotations

from datetime import datetime

from .common import ApiModel, Page


class NotificationView(ApiModel):
    id: int
    type: str
    message: str
    is_read: bool
    created_at: datetime


class NotificationPage(Page[NotificationView]):
    """Page of notifications plus the caller's overall unread count."""

    unread_count: int


class UnreadCount(ApiModel):
    count: int
