from __future__ import annotations

import json
from datetime import datetime

import pytest

from remindo.core.clock import FixedClock
from remindo.models import KeyValueBlob
from remindo.schemas import Reminder, ReminderCreate
from remindo.services.reminders import ReminderService
from remindo.services.store import BlobReminderStore, MemoryReminderStore, decode_reminders

KEY = "remindo_reminders"


def sample_reminders() -> list[Reminder]:
    return [
        Reminder(id="_a1", text="Stand-up", time="09:45", repeat="weekly", weekdays=(1, 3, 5)),
        Reminder(id="_b2", text="Pay rent", time="08:00", repeat="monthly", dates=(1, 15), done=True),
        Reminder(id="_c3", text="Call mum 📞", time="19:00", repeat="none"),
    ]


@pytest.mark.anyio("asyncio")
async def test_blob_store_starts_empty(session_factory) -> None:
    store = BlobReminderStore(session_factory, KEY)

    assert await store.load_all() == []


@pytest.mark.anyio("asyncio")
async def test_blob_store_round_trips_every_field(session_factory) -> None:
    store = BlobReminderStore(session_factory, KEY)
    reminders = sample_reminders()

    await store.save_all(reminders)

    assert await store.load_all() == reminders


@pytest.mark.anyio("asyncio")
async def test_blob_store_overwrites_the_previous_snapshot(session_factory) -> None:
    store = BlobReminderStore(session_factory, KEY)
    reminders = sample_reminders()

    await store.save_all(reminders)
    await store.save_all(reminders[:1])

    assert await store.load_all() == reminders[:1]
    async with session_factory() as session:
        blob = await session.get(KeyValueBlob, KEY)
        assert blob is not None
        assert [item["id"] for item in json.loads(blob.value)] == ["_a1"]


@pytest.mark.anyio("asyncio")
async def test_blob_store_keys_are_independent(session_factory) -> None:
    first = BlobReminderStore(session_factory, KEY)
    second = BlobReminderStore(session_factory, "other_profile")

    await first.save_all(sample_reminders())

    assert await second.load_all() == []


@pytest.mark.anyio("asyncio")
async def test_blob_store_skips_undecodable_entries(session_factory) -> None:
    raw = json.dumps(
        [
            {"id": "_ok", "text": "Valid", "time": "10:00", "repeat": "daily"},
            {"id": "_broken", "text": "Bad days", "time": "10:00", "weekdays": ["monday"]},
            "not even an object",
        ]
    )
    async with session_factory() as session:
        session.add(KeyValueBlob(key=KEY, value=raw))
        await session.commit()

    loaded = await BlobReminderStore(session_factory, KEY).load_all()

    assert [item.id for item in loaded] == ["_ok"]


@pytest.mark.anyio("asyncio")
async def test_writes_keep_entries_that_do_not_decode(session_factory) -> None:
    broken_days = {"id": "_broken", "text": "Bad days", "time": "10:00", "repeat": "weekly", "weekdays": ["mon"]}
    numeric_time = {"id": "_numeric", "text": "Numeric time", "time": 930, "repeat": "daily"}
    raw = json.dumps(
        [
            {"id": "_ok", "text": "Valid", "time": "10:00", "repeat": "daily"},
            {"id": "_legacy", "text": "Old weekly", "time": "08:00", "repeat": "weekly", "weekdays": None},
            broken_days,
            numeric_time,
        ]
    )
    async with session_factory() as session:
        session.add(KeyValueBlob(key=KEY, value=raw))
        await session.commit()

    store = BlobReminderStore(session_factory, KEY)
    service = ReminderService(store, clock=FixedClock(datetime(2024, 3, 14, 9, 0)))

    created = await service.create(ReminderCreate(text="New", time="11:00"))
    await service.mark_done("_legacy")

    loaded = await store.load_all()
    assert [item.id for item in loaded] == ["_ok", "_legacy", created.id]
    assert loaded[1].weekdays == ()
    assert loaded[1].done is True

    async with session_factory() as session:
        blob = await session.get(KeyValueBlob, KEY)
        assert blob is not None
        stored = json.loads(blob.value)
    assert broken_days in stored
    assert numeric_time in stored
    assert len(stored) == 5


def test_decode_tolerates_garbage_and_keeps_loose_values() -> None:
    assert decode_reminders(None) == []
    assert decode_reminders("{not json") == []
    assert decode_reminders('{"id": "_x"}') == []

    loaded = decode_reminders(
        json.dumps([{"id": "_x", "text": "Odd", "time": "7h", "repeat": "yearly", "weekdays": ["2"]}])
    )
    assert loaded[0].time == "7h"
    assert loaded[0].repeat == "yearly"
    assert loaded[0].weekdays == (2,)
    assert loaded[0].done is False


@pytest.mark.anyio("asyncio")
async def test_memory_store_returns_snapshots() -> None:
    store = MemoryReminderStore(sample_reminders())

    snapshot = await store.load_all()
    snapshot.clear()

    assert len(await store.load_all()) == 3
