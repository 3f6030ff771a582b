"""
Pytest configuration and fixtures.
"""

import sys
import datetime
from pathlib import Path
from typing import List, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from pomotrack.infra.db import Base
from pomotrack.services.clock import Clock
from pomotrack.services.notifications import Notifier

# Wednesday morning; the week started on Sunday 2026-01-04
START = datetime.datetime(2026, 1, 7, 9, 0, 0)


class ManualClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, start: datetime.datetime = START):
        self.current = start

    def now(self) -> datetime.datetime:
        return self.current

    def advance(self, seconds: float = 0, minutes: float = 0) -> None:
        self.current += datetime.timedelta(seconds=seconds, minutes=minutes)

    def set(self, moment: datetime.datetime) -> None:
        self.current = moment


class RecordingNotifier(Notifier):
    """Keeps every notification, newest last"""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.messages.append((title, body))


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="session")
def qt_app():
    """A Qt core application so QObjects and QTimers can be created"""
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def settings(tmp_path):
    """Settings isolated in a temporary config directory"""
    from pomotrack.infra.config import Settings
    return Settings(
        config_dir=tmp_path / "config",
        data_dir=tmp_path / "data",
        language="en",
    )


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
