"""Pydantic schemas for reminder resources."""
from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

Weekday = Annotated[int, Field(ge=0, le=6)]
DayOfMonth = Annotated[int, Field(ge=1, le=31)]


class RepeatKind(str, Enum):
    """Recurrence policies a reminder can follow."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Reminder(BaseModel):
    """A stored reminder as read by the scanner and the calculator.

    Values are deliberately loose: ``time`` and ``repeat`` are kept as the raw
    strings found in the store so a damaged entry still loads and simply never
    produces an occurrence.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    text: str
    time: str
    repeat: str = RepeatKind.NONE.value
    weekdays: tuple[int, ...] = ()
    dates: tuple[int, ...] = ()
    done: bool = False

    @field_validator("weekdays", "dates", mode="before")
    @classmethod
    def empty_when_missing(cls, value: object) -> object:
        return () if value is None else value


class ReminderCreate(BaseModel):
    text: str = Field(min_length=1, max_length=500)
    time: str
    repeat: RepeatKind = RepeatKind.NONE
    weekdays: list[Weekday] = Field(default_factory=list)
    dates: list[DayOfMonth] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("time must be a 24-hour HH:MM value")
        return value

    @field_validator("weekdays", "dates")
    @classmethod
    def drop_duplicates(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def clear_unused_selection(self) -> "ReminderCreate":
        if self.repeat is not RepeatKind.WEEKLY:
            self.weekdays = []
        if self.repeat is not RepeatKind.MONTHLY:
            self.dates = []
        return self


class ReminderRead(Reminder):
    next_occurrence: datetime | None = None
