from __future__ import annotations

import json
from datetime import datetime

import httpx
import pytest

from remindo.core.config import Settings
from remindo.schemas import Reminder
from remindo.services.notifier import (
    NOTIFICATION_TITLE,
    FanoutNotifier,
    LogNotifier,
    NotificationError,
    NotificationFeed,
    WebhookNotifier,
    build_notifier,
)

FIRED_AT = datetime(2024, 3, 14, 9, 27)


def make_reminder(reminder_id: str = "_tag1", text: str = "Take a break") -> Reminder:
    return Reminder(id=reminder_id, text=text, time="09:30")


class ExplodingNotifier:
    async def notify(self, reminder: Reminder) -> None:
        raise RuntimeError("offline")


@pytest.mark.anyio("asyncio")
async def test_feed_records_tagged_entries_in_order() -> None:
    feed = NotificationFeed(clock=lambda: FIRED_AT)

    await feed.notify(make_reminder("_one", "First"))
    await feed.notify(make_reminder("_two", "Second"))

    entries = feed.since()
    assert [(entry.id, entry.tag, entry.body) for entry in entries] == [
        (1, "_one", "First"),
        (2, "_two", "Second"),
    ]
    assert entries[0].title == NOTIFICATION_TITLE
    assert entries[0].fired_at == FIRED_AT
    assert [entry.id for entry in feed.since(1)] == [2]
    assert feed.since(2) == []


@pytest.mark.anyio("asyncio")
async def test_feed_is_bounded() -> None:
    feed = NotificationFeed(maxlen=2)

    for index in range(5):
        await feed.notify(make_reminder(f"_{index}"))

    assert len(feed) == 2
    assert [entry.id for entry in feed.since()] == [4, 5]


@pytest.mark.anyio("asyncio")
async def test_webhook_posts_reminder_payload() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(204)

    notifier = WebhookNotifier("https://hooks.example.com/remindo", transport=httpx.MockTransport(handler))

    await notifier.notify(make_reminder())

    assert len(captured) == 1
    assert captured[0].method == "POST"
    assert str(captured[0].url) == "https://hooks.example.com/remindo"
    assert json.loads(captured[0].content) == {
        "tag": "_tag1",
        "title": NOTIFICATION_TITLE,
        "body": "Take a break",
    }


@pytest.mark.anyio("asyncio")
async def test_webhook_error_status_raises_notification_error() -> None:
    notifier = WebhookNotifier(
        "https://hooks.example.com/remindo",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )

    with pytest.raises(NotificationError):
        await notifier.notify(make_reminder())


@pytest.mark.anyio("asyncio")
async def test_webhook_transport_error_raises_notification_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    notifier = WebhookNotifier("https://hooks.example.com/remindo", transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationError):
        await notifier.notify(make_reminder())


@pytest.mark.anyio("asyncio")
async def test_fanout_keeps_delivering_after_a_failure() -> None:
    feed = NotificationFeed()
    notifier = FanoutNotifier([ExplodingNotifier(), feed, LogNotifier()])

    with pytest.raises(NotificationError):
        await notifier.notify(make_reminder())

    assert [entry.tag for entry in feed.since()] == ["_tag1"]


def test_build_notifier_respects_settings() -> None:
    feed = NotificationFeed()

    disabled = build_notifier(Settings(notifications_enabled=False), feed)
    assert isinstance(disabled, LogNotifier)

    default = build_notifier(Settings(), feed)
    assert isinstance(default, FanoutNotifier)
    assert feed in default.notifiers
    assert not any(isinstance(item, WebhookNotifier) for item in default.notifiers)

    with_webhook = build_notifier(Settings(notify_webhook_url="https://hooks.example.com/x"), feed)
    assert isinstance(with_webhook, FanoutNotifier)
    webhooks = [item for item in with_webhook.notifiers if isinstance(item, WebhookNotifier)]
    assert [hook.url for hook in webhooks] == ["https://hooks.example.com/x"]
