"""Notification feed routes polled by the web page."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from remindo.api.v1.common import data_response, get_notification_feed
from remindo.schemas import NotificationRead
from remindo.services.notifier import NotificationFeed

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    after: int = Query(0, ge=0),
    feed: NotificationFeed = Depends(get_notification_feed),
) -> dict[str, list[NotificationRead]]:
    """Return notifications fired after the given feed id."""

    payload = [NotificationRead.model_validate(entry) for entry in feed.since(after)]
    return data_response(payload)
