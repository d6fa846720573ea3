"""Common helpers for API responses and shared dependencies."""
from __future__ import annotations

from typing import TypeVar

from fastapi import Request

from remindo.services.notifier import NotificationFeed
from remindo.services.reminders import ReminderService

T = TypeVar("T")


def data_response(payload: T) -> dict[str, T]:
    """Wrap a payload in the standard data envelope."""

    return {"data": payload}


def get_reminder_service(request: Request) -> ReminderService:
    return request.app.state.reminder_service


def get_notification_feed(request: Request) -> NotificationFeed:
    return request.app.state.notification_feed
