"""Periodic due-check over every stored reminder."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from remindo.core.clock import Clock, SystemClock
from remindo.schemas import Reminder
from remindo.services.notifier import Notifier
from remindo.services.occurrence import next_occurrence
from remindo.services.store import ReminderStore

DEFAULT_INTERVAL_SECONDS = 60.0
DEFAULT_TOLERANCE = timedelta(minutes=5)

OccurrenceFunc = Callable[[Reminder, datetime], datetime | None]

logger = logging.getLogger(__name__)


class DueScanner:
    """Fire the notifier for every pending reminder whose next occurrence is near.

    Each cycle reads one snapshot from the store, so reminders marked done
    while a cycle runs are only skipped from the next cycle on. A reminder
    that stays inside the tolerance window across cycles is notified on each
    of them.
    """

    def __init__(
        self,
        store: ReminderStore,
        notifier: Notifier,
        *,
        clock: Clock | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        tolerance: timedelta = DEFAULT_TOLERANCE,
        calculate: OccurrenceFunc = next_occurrence,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.store = store
        self.notifier = notifier
        self.clock = clock or SystemClock()
        self.interval_seconds = interval_seconds
        self.tolerance = tolerance
        self._calculate = calculate
        self._task: asyncio.Task[None] | None = None

    def is_due(self, occurrence: datetime | None, now: datetime) -> bool:
        return occurrence is not None and abs(occurrence - now) < self.tolerance

    async def scan_once(self, now: datetime | None = None) -> list[Reminder]:
        """Run one due scan cycle and return the reminders that were notified."""

        now = now or self.clock.now()
        reminders = await self.store.load_all()
        notified: list[Reminder] = []

        for reminder in reminders:
            if reminder.done:
                continue
            try:
                occurrence = self._calculate(reminder, now)
            except Exception:  # noqa: BLE001 - one bad entry must not end the cycle
                logger.exception(
                    "Could not compute next occurrence", extra={"reminder_id": reminder.id}
                )
                continue
            if not self.is_due(occurrence, now):
                continue

            try:
                await self.notifier.notify(reminder)
            except Exception:  # noqa: BLE001 - keep notifying the remaining reminders
                logger.exception("Notification failed", extra={"reminder_id": reminder.id})
                continue
            notified.append(reminder)

        logger.debug(
            "Due scan finished",
            extra={"scanned": len(reminders), "notified": len(notified)},
        )
        return notified

    async def run(self) -> None:
        """Scan forever, one cycle every ``interval_seconds`` measured start to start.

        The first cycle begins one interval after the call.
        """

        loop = asyncio.get_running_loop()
        next_start = loop.time() + self.interval_seconds
        while True:
            await asyncio.sleep(max(0.0, next_start - loop.time()))
            next_start += self.interval_seconds
            try:
                await self.scan_once()
            except Exception:  # noqa: BLE001 - the loop outlives a failed cycle
                logger.exception("Due scan cycle failed")
            if next_start < loop.time():
                next_start = loop.time() + self.interval_seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Launch :meth:`run` as a background task on the running loop."""

        if self.running:
            assert self._task is not None
            return self._task
        self._task = asyncio.create_task(self.run(), name="remindo-due-scanner")
        logger.info("Due scanner started", extra={"interval_seconds": self.interval_seconds})
        return self._task

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""

        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("Due scanner stopped")
