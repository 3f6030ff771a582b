"""
Tests for the database engine singleton.
"""

import pytest

from pomotrack.domain.models import Task
from pomotrack.infra.db import DatabaseEngine, get_engine, init_db
from pomotrack.infra.repository import TaskRepository


@pytest.mark.asyncio
async def test_init_db_creates_schema(tmp_path):
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'pomotrack.db'}"
    try:
        await init_db(db_url)
        assert get_engine() is get_engine(db_url)

        # Repositories without an injected session use the shared engine
        repo = TaskRepository()
        created = await repo.create(Task(title="Stored on disk"))
        assert (await repo.get_by_id(created.id)).title == "Stored on disk"
        assert (tmp_path / "pomotrack.db").exists()
    finally:
        await DatabaseEngine.dispose_instance()

    assert DatabaseEngine._instance is None
