"""Next-occurrence arithmetic for reminders.

Every function here is pure: the result depends only on the reminder and the
``now`` instant handed in. Malformed reminders (bad ``time``, out-of-range
weekdays or dates, unknown repeat kinds) yield ``None`` instead of raising so
a single damaged entry can never stop a due scan.
"""
from __future__ import annotations

import calendar
import re
from collections.abc import Iterable
from datetime import datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from remindo.schemas.reminder import Reminder, RepeatKind

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

# Any day of month 1..31 shows up again within this many months.
_MONTH_SEARCH_LIMIT = 12
LEGACY_MONTH_OFFSET_DAYS = 31


def parse_time_of_day(raw: object) -> time | None:
    """Parse an ``HH:MM`` string, returning ``None`` when it is not a valid time."""

    if not isinstance(raw, str):
        return None
    match = _TIME_PATTERN.match(raw)
    if match is None:
        return None
    try:
        return time(int(match.group(1)), int(match.group(2)))
    except ValueError:
        return None


def sunday_based_weekday(moment: datetime) -> int:
    """Return the weekday of ``moment`` numbered Sunday=0 .. Saturday=6."""

    return moment.isoweekday() % 7


def next_occurrence(
    reminder: Reminder, now: datetime, *, legacy_monthly_wrap: bool = False
) -> datetime | None:
    """Return the next instant at or after ``now`` when ``reminder`` is due.

    ``None`` means the reminder will not fire again: a one-off whose time has
    already passed today, or an entry that cannot be interpreted.
    """

    at = parse_time_of_day(reminder.time)
    if at is None:
        return None
    try:
        kind = RepeatKind(reminder.repeat)
    except ValueError:
        return None

    today_at = datetime.combine(now.date(), at)
    passed = today_at < now

    match kind:
        case RepeatKind.NONE:
            return None if passed else today_at
        case RepeatKind.DAILY:
            return today_at + timedelta(days=1) if passed else today_at
        case RepeatKind.WEEKLY:
            return _next_weekly(today_at, now, reminder.weekdays)
        case RepeatKind.MONTHLY:
            if legacy_monthly_wrap:
                return _next_monthly_flat(today_at, now, reminder.dates)
            return _next_monthly(today_at, now, reminder.dates)
    return None  # pragma: no cover


def _next_weekly(today_at: datetime, now: datetime, weekdays: Iterable[int]) -> datetime | None:
    weekdays = list(weekdays)
    passed = today_at < now
    if not weekdays:
        return today_at + timedelta(days=7) if passed else today_at
    if any(day not in range(7) for day in weekdays):
        return None

    today = sunday_based_weekday(now)
    best: int | None = None
    for day in weekdays:
        diff = (day - today + 7) % 7
        if diff == 0 and passed:
            diff = 7
        if best is None or diff < best:
            best = diff
    return today_at + timedelta(days=best)


def _next_monthly(today_at: datetime, now: datetime, dates: Iterable[int]) -> datetime | None:
    dates = list(dates)
    if not dates:
        return today_at + relativedelta(months=1) if today_at < now else today_at
    if any(day not in range(1, 32) for day in dates):
        return None

    month_start = today_at.date().replace(day=1)
    best: datetime | None = None
    for day in set(dates):
        for months_ahead in range(_MONTH_SEARCH_LIMIT):
            month = month_start + relativedelta(months=months_ahead)
            if day > calendar.monthrange(month.year, month.month)[1]:
                continue
            candidate = datetime.combine(month.replace(day=day), today_at.time())
            if candidate >= now:
                if best is None or candidate < best:
                    best = candidate
                break
    return best


def _next_monthly_flat(today_at: datetime, now: datetime, dates: Iterable[int]) -> datetime | None:
    """Monthly stepping with a constant 31-day wrap, as older releases computed it."""

    dates = list(dates)
    passed = today_at < now
    if not dates:
        return today_at + relativedelta(months=1) if passed else today_at
    if any(day not in range(1, 32) for day in dates):
        return None

    today = now.day
    best: int | None = None
    for day in dates:
        diff = day - today
        if diff == 0 and passed:
            diff = LEGACY_MONTH_OFFSET_DAYS
        if diff < 0:
            diff += LEGACY_MONTH_OFFSET_DAYS
        if best is None or diff < best:
            best = diff
    return today_at + timedelta(days=best)
