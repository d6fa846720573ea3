"""Reminder API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from remindo.api.v1.common import data_response, get_reminder_service
from remindo.schemas import ReminderCreate, ReminderRead
from remindo.services.reminders import ReminderNotFoundError, ReminderService

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_reminder(
    payload: ReminderCreate, service: ReminderService = Depends(get_reminder_service)
) -> dict[str, ReminderRead]:
    """Create a reminder."""

    reminder = await service.create(payload)
    return data_response(reminder)


@router.get("")
async def list_reminders(
    done: bool | None = None,
    service: ReminderService = Depends(get_reminder_service),
) -> dict[str, list[ReminderRead]]:
    """List reminders in stored order, each with its next occurrence."""

    reminders = await service.list_reminders(done=done)
    return data_response(reminders)


@router.post("/{reminder_id}/done")
async def mark_reminder_done(
    reminder_id: str, service: ReminderService = Depends(get_reminder_service)
) -> dict[str, ReminderRead]:
    """Mark a reminder as done so it is no longer scanned."""

    try:
        reminder = await service.mark_done(reminder_id)
    except ReminderNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found"
        ) from exc
    return data_response(reminder)
