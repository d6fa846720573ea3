"""Notification delivery for due reminders."""
from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import httpx

from remindo.core.config import Settings
from remindo.schemas import Reminder

NOTIFICATION_TITLE = "Remindo Reminder"
WEBHOOK_TIMEOUT = httpx.Timeout(10.0)

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a notification could not be delivered."""


class Notifier(Protocol):
    async def notify(self, reminder: Reminder) -> None:
        ...


@dataclass(frozen=True)
class Notification:
    """A notification that has been fired, as shown to the browser."""

    id: int
    tag: str
    title: str
    body: str
    fired_at: datetime


class LogNotifier:
    """Write every notification to the application log."""

    async def notify(self, reminder: Reminder) -> None:
        logger.info(
            "Reminder due",
            extra={"reminder_id": reminder.id, "reminder_text": reminder.text},
        )


class NotificationFeed:
    """Bounded in-memory list of fired notifications.

    The web page polls this feed and turns new entries into browser
    notifications, tagged by reminder id so repeats replace each other.
    """

    def __init__(self, maxlen: int = 100, clock: Callable[[], datetime] = datetime.now) -> None:
        self._entries: deque[Notification] = deque(maxlen=maxlen)
        self._ids = itertools.count(1)
        self._clock = clock

    async def notify(self, reminder: Reminder) -> None:
        self._entries.append(
            Notification(
                id=next(self._ids),
                tag=reminder.id,
                title=NOTIFICATION_TITLE,
                body=reminder.text,
                fired_at=self._clock(),
            )
        )

    def since(self, after_id: int = 0) -> list[Notification]:
        """Return entries newer than ``after_id``, oldest first."""

        return [entry for entry in self._entries if entry.id > after_id]

    def __len__(self) -> int:
        return len(self._entries)


class WebhookNotifier:
    """POST each notification as JSON to an external endpoint."""

    def __init__(self, url: str, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.url = url
        self._transport = transport

    async def notify(self, reminder: Reminder) -> None:
        payload = {"tag": reminder.id, "title": NOTIFICATION_TITLE, "body": reminder.text}
        try:
            async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Webhook request failed: {exc}") from exc

        if response.is_error:
            raise NotificationError(
                f"Webhook responded with status {response.status_code}"
            )


class FanoutNotifier:
    """Deliver to several notifiers; one failing target does not starve the others."""

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self.notifiers = list(notifiers)

    async def notify(self, reminder: Reminder) -> None:
        failures: list[str] = []
        for notifier in self.notifiers:
            try:
                await notifier.notify(reminder)
            except Exception as exc:  # noqa: BLE001 - isolate each target
                logger.exception(
                    "Notifier failed",
                    extra={"reminder_id": reminder.id, "notifier": type(notifier).__name__},
                )
                failures.append(f"{type(notifier).__name__}: {exc}")
        if failures:
            raise NotificationError("; ".join(failures))


def build_notifier(settings: Settings, feed: NotificationFeed) -> Notifier:
    """Assemble the notifier chain described by the settings."""

    if not settings.notifications_enabled:
        return LogNotifier()

    notifiers: list[Notifier] = [feed, LogNotifier()]
    if settings.notify_webhook_url:
        notifiers.append(WebhookNotifier(settings.notify_webhook_url))
    return FanoutNotifier(notifiers)
