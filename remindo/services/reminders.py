"""Creating, listing and completing reminders."""
from __future__ import annotations

import asyncio
import logging
import secrets
import string
from datetime import datetime

from remindo.core.clock import Clock, SystemClock
from remindo.schemas import Reminder, ReminderCreate, ReminderRead
from remindo.services.occurrence import next_occurrence
from remindo.services.store import ReminderStore

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 9

logger = logging.getLogger(__name__)


class ReminderNotFoundError(LookupError):
    """Raised when no stored reminder carries the requested id."""


def generate_reminder_id() -> str:
    """Return a short random identifier such as ``_k3j9x0a1b``."""

    return "_" + "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


class ReminderService:
    """User-facing reminder operations on top of a :class:`ReminderStore`."""

    def __init__(
        self,
        store: ReminderStore,
        *,
        clock: Clock | None = None,
        legacy_monthly_wrap: bool = False,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.legacy_monthly_wrap = legacy_monthly_wrap
        self._write_lock = asyncio.Lock()

    def next_occurrence(self, reminder: Reminder, now: datetime | None = None) -> datetime | None:
        return next_occurrence(
            reminder, now or self.clock.now(), legacy_monthly_wrap=self.legacy_monthly_wrap
        )

    def to_read(self, reminder: Reminder, now: datetime | None = None) -> ReminderRead:
        return ReminderRead(
            **reminder.model_dump(),
            next_occurrence=self.next_occurrence(reminder, now),
        )

    async def create(self, payload: ReminderCreate) -> ReminderRead:
        async with self._write_lock:
            reminders = await self.store.load_all()
            taken = {reminder.id for reminder in reminders}
            reminder_id = generate_reminder_id()
            while reminder_id in taken:
                reminder_id = generate_reminder_id()

            reminder = Reminder(
                id=reminder_id,
                text=payload.text,
                time=payload.time,
                repeat=payload.repeat.value,
                weekdays=tuple(payload.weekdays),
                dates=tuple(payload.dates),
                done=False,
            )
            reminders.append(reminder)
            await self.store.save_all(reminders)

        logger.info("Reminder created", extra={"reminder_id": reminder.id, "repeat": reminder.repeat})
        return self.to_read(reminder)

    async def list_reminders(self, *, done: bool | None = None) -> list[ReminderRead]:
        now = self.clock.now()
        reminders = await self.store.load_all()
        if done is not None:
            reminders = [reminder for reminder in reminders if reminder.done is done]
        return [self.to_read(reminder, now) for reminder in reminders]

    async def mark_done(self, reminder_id: str) -> ReminderRead:
        async with self._write_lock:
            reminders = await self.store.load_all()
            for index, reminder in enumerate(reminders):
                if reminder.id == reminder_id:
                    break
            else:
                raise ReminderNotFoundError(reminder_id)

            if not reminder.done:
                reminder = reminder.model_copy(update={"done": True})
                reminders[index] = reminder
                await self.store.save_all(reminders)
                logger.info("Reminder marked done", extra={"reminder_id": reminder.id})

        return self.to_read(reminder)
