"""Reminder persistence behind a small load/save interface."""
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from remindo.models import KeyValueBlob
from remindo.schemas import Reminder

logger = logging.getLogger(__name__)


class ReminderStore(Protocol):
    """Snapshot access to the full list of reminders."""

    async def load_all(self) -> list[Reminder]:
        ...

    async def save_all(self, reminders: Sequence[Reminder]) -> None:
        ...


def encode_reminders(reminders: Sequence[Reminder], unreadable: Sequence[Any] = ()) -> str:
    """Serialize reminders into the JSON array kept in the blob.

    ``unreadable`` entries are written back verbatim after the reminders.
    """

    items = [reminder.model_dump(mode="json") for reminder in reminders]
    items.extend(unreadable)
    return json.dumps(items, ensure_ascii=False)


def split_stored_entries(raw: str | None) -> tuple[list[Reminder], list[Any]]:
    """Parse the stored JSON array into reminders and the raw entries that do not decode."""

    if not raw:
        return [], []
    try:
        items: Any = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored reminder blob is not valid JSON; treating it as empty")
        return [], []
    if not isinstance(items, list):
        logger.warning("Stored reminder blob is not a list; treating it as empty")
        return [], []

    reminders: list[Reminder] = []
    unreadable: list[Any] = []
    for item in items:
        try:
            reminders.append(Reminder.model_validate(item))
        except ValidationError:
            unreadable.append(item)
    if unreadable:
        logger.warning(
            "Skipping undecodable reminder entries", extra={"unreadable": len(unreadable)}
        )
    return reminders, unreadable


def decode_reminders(raw: str | None) -> list[Reminder]:
    """Parse the stored JSON array, skipping entries that do not decode."""

    return split_stored_entries(raw)[0]


class BlobReminderStore:
    """Keep every reminder as one JSON array under a single key."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], key: str) -> None:
        self._session_factory = session_factory
        self.key = key

    async def load_all(self) -> list[Reminder]:
        async with self._session_factory() as session:
            blob = await session.get(KeyValueBlob, self.key)
            return decode_reminders(blob.value if blob is not None else None)

    async def save_all(self, reminders: Sequence[Reminder]) -> None:
        """Replace the stored reminders, carrying over entries that could not be decoded."""

        async with self._session_factory() as session:
            blob = await session.get(KeyValueBlob, self.key)
            if blob is None:
                session.add(KeyValueBlob(key=self.key, value=encode_reminders(reminders)))
            else:
                _, unreadable = split_stored_entries(blob.value)
                blob.value = encode_reminders(reminders, unreadable)
            await session.commit()


class MemoryReminderStore:
    """In-process store, handy for tests and scripts."""

    def __init__(self, reminders: Sequence[Reminder] = ()) -> None:
        self._reminders = list(reminders)

    async def load_all(self) -> list[Reminder]:
        return list(self._reminders)

    async def save_all(self, reminders: Sequence[Reminder]) -> None:
        self._reminders = list(reminders)
