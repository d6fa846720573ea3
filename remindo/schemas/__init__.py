"""Pydantic schemas for the reminders service."""

from .notification import NotificationRead
from .reminder import Reminder, ReminderCreate, ReminderRead, RepeatKind

__all__ = [
    "NotificationRead",
    "Reminder",
    "ReminderCreate",
    "ReminderRead",
    "RepeatKind",
]
