"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Keep the timers free of I/O (they work on in-memory stores)
- Mock data for testing
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from pomotrack.domain.models import Task, TimeEntry, PomodoroSession, TaskTemplate
from pomotrack.infra.db import (
    TaskModel, TimeEntryModel, PomodoroSessionModel, TaskTemplateModel, get_engine
)


class _Repository:
    """Session handling shared by all repositories"""

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()


class TaskRepository(_Repository):
    """
    Handles all Task-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    async def get_all(self, include_completed: bool = True) -> List[Task]:
        """Get all tasks in creation order"""
        session = await self._get_session()
        async with session:
            stmt = select(TaskModel).order_by(TaskModel.id)
            if not include_completed:
                stmt = stmt.where(TaskModel.is_completed == False)

            result = await session.execute(stmt)
            return [Task.model_validate(tm) for tm in result.scalars().all()]

    async def get_by_id(self, task_id: int) -> Optional[Task]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.id == task_id)
            )
            task_model = result.scalar_one_or_none()
            return Task.model_validate(task_model) if task_model else None

    async def create(self, task: Task) -> Task:
        """Create a new task"""
        session = await self._get_session()
        async with session:
            task_model = TaskModel(
                title=task.title,
                description=task.description,
                priority=task.priority.value,
                category=task.category,
                due_date=task.due_date,
                estimated_minutes=task.estimated_minutes,
                is_completed=task.is_completed,
                time_spent=task.time_spent,
                session_minutes=task.session_minutes,
                created_at=task.created_at
            )
            session.add(task_model)
            await session.commit()
            await session.refresh(task_model)
            return Task.model_validate(task_model)

    async def update(self, task: Task) -> Optional[Task]:
        """Update an existing task"""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TaskModel)
                .where(TaskModel.id == task.id)
                .values(
                    title=task.title,
                    description=task.description,
                    priority=task.priority.value,
                    category=task.category,
                    due_date=task.due_date,
                    estimated_minutes=task.estimated_minutes,
                    is_completed=task.is_completed,
                    time_spent=task.time_spent,
                    session_minutes=task.session_minutes
                )
            )
            await session.commit()
        return await self.get_by_id(task.id)

    async def delete(self, task_id: int) -> int:
        """
        Delete a task together with its time entries.

        Returns the number of time entries removed.
        """
        session = await self._get_session()
        async with session:
            result = await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.task_id == task_id)
            )
            await session.execute(
                update(PomodoroSessionModel)
                .where(PomodoroSessionModel.task_id == task_id)
                .values(task_id=None)
            )
            await session.execute(delete(TaskModel).where(TaskModel.id == task_id))
            await session.commit()
            return result.rowcount


class TimeEntryRepository(_Repository):
    """
    Handles all TimeEntry-related database operations.

    Entries are only ever created and closed; there is no general update.
    """

    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Create a new time entry, keeping the ledger's id when it has one"""
        session = await self._get_session()
        async with session:
            entry_model = TimeEntryModel(
                task_id=entry.task_id,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration=entry.duration,
                notes=entry.notes
            )
            if entry.id is not None:
                entry_model.id = entry.id
            session.add(entry_model)
            await session.commit()
            await session.refresh(entry_model)
            return TimeEntry.model_validate(entry_model)

    async def close(self, entry: TimeEntry) -> Optional[TimeEntry]:
        """Store end time and duration of a closed entry (open rows only)"""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.id == entry.id, TimeEntryModel.end_time.is_(None))
                .values(end_time=entry.end_time, duration=entry.duration)
            )
            await session.commit()
            result = await session.execute(
                select(TimeEntryModel).where(TimeEntryModel.id == entry.id)
            )
            entry_model = result.scalar_one_or_none()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    async def get_all(self) -> List[TimeEntry]:
        """Get every entry in chronological order"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel).order_by(TimeEntryModel.start_time)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def get_by_task(self, task_id: int) -> List[TimeEntry]:
        """Get all time entries of a task in chronological order"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(TimeEntryModel.task_id == task_id)
                .order_by(TimeEntryModel.start_time)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def get_in_range(self, start: datetime, end: datetime) -> List[TimeEntry]:
        """Entries whose start_time lies in [start, end)"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(TimeEntryModel.start_time >= start, TimeEntryModel.start_time < end)
                .order_by(TimeEntryModel.start_time)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def get_active_entry(self) -> Optional[TimeEntry]:
        """Get the currently open (not ended) time entry, the newest if several"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(TimeEntryModel.end_time.is_(None))
                .order_by(TimeEntryModel.start_time.desc())
                .limit(1)
            )
            entry_model = result.scalar_one_or_none()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    async def delete_by_task(self, task_id: int) -> int:
        """Delete all entries of a task. Returns the number of rows removed."""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.task_id == task_id)
            )
            await session.commit()
            return result.rowcount


class PomodoroSessionRepository(_Repository):
    """Handles the history of completed Pomodoro work phases"""

    async def create(self, pomodoro: PomodoroSession) -> PomodoroSession:
        session = await self._get_session()
        async with session:
            model = PomodoroSessionModel(
                task_id=pomodoro.task_id,
                completed_at=pomodoro.completed_at,
                duration_minutes=pomodoro.duration_minutes
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return PomodoroSession.model_validate(model)

    async def get_in_range(self, start: datetime, end: datetime) -> List[PomodoroSession]:
        """Sessions completed in [start, end)"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(PomodoroSessionModel)
                .where(PomodoroSessionModel.completed_at >= start,
                       PomodoroSessionModel.completed_at < end)
                .order_by(PomodoroSessionModel.completed_at)
            )
            return [PomodoroSession.model_validate(m) for m in result.scalars().all()]


class TaskTemplateRepository(_Repository):
    """Handles saved task templates"""

    async def get_all(self) -> List[TaskTemplate]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskTemplateModel).order_by(TaskTemplateModel.id)
            )
            return [TaskTemplate.model_validate(m) for m in result.scalars().all()]

    async def create(self, template: TaskTemplate) -> TaskTemplate:
        session = await self._get_session()
        async with session:
            model = TaskTemplateModel(
                title=template.title,
                description=template.description,
                priority=template.priority.value,
                category=template.category,
                estimated_minutes=template.estimated_minutes
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return TaskTemplate.model_validate(model)

    async def delete(self, template_id: int) -> None:
        session = await self._get_session()
        async with session:
            await session.execute(
                delete(TaskTemplateModel).where(TaskTemplateModel.id == template_id)
            )
            await session.commit()
