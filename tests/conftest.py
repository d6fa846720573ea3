from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from remindo.core.config import get_settings  # noqa: E402

TEST_DB_PATH = ROOT / "test_remindo.db"
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["SCANNER_ENABLED"] = "false"
get_settings.cache_clear()


@pytest.fixture()
async def session_factory():
    from remindo.core.db import AsyncSessionLocal, engine
    from remindo.models import Base

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)

    yield AsyncSessionLocal


@pytest.fixture()
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    from remindo.main import app
    from remindo.services.notifier import NotificationFeed

    app.state.notification_feed = NotificationFeed()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"
