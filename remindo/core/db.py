"""Database engine and session factory for the key-value store."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from remindo.core.config import get_settings

settings = get_settings()

engine: AsyncEngine = create_async_engine(settings.async_database_url, future=True)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)
