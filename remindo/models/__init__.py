"""Database models package for the reminders service."""

from .base import Base
from .blob import KeyValueBlob

__all__ = [
    "Base",
    "KeyValueBlob",
]
