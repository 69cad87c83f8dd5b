"""
Read-only queries feeding the analytics calculations.

Every method opens its own session from the factory: the orchestrator runs
sections concurrently and an ``AsyncSession`` must not be shared between tasks.
"""

from datetime import datetime
from typing import Dict, List, Protocol

from sqlalchemy import and_, case, func, or_, select

from taskmaster.db.session import SessionFactory
from taskmaster.models.task import Subtask, Task, TaskPriority, TaskStatus
from taskmaster.services.analytics import SubtaskTotals, TaskActivity


class AnalyticsRepository(Protocol):
    """Interface for the rows the analytics sections read."""

    async def fetch_task_activity(self, user_id: int, since: datetime) -> List[TaskActivity]:
        """Tasks created since ``since`` or completed since ``since``."""
        ...

    async def fetch_task_completions(self, user_id: int, since: datetime) -> List[TaskActivity]:
        """Completed tasks whose completion moment is at or after ``since``, newest first."""
        ...

    async def fetch_subtask_completions(self, user_id: int, since: datetime) -> List[datetime]:
        """Completion moments of completed subtasks at or after ``since``, newest first."""
        ...

    async def count_tasks_by_priority(self, user_id: int) -> Dict[TaskPriority, int]:
        ...

    async def count_tasks_by_status(self, user_id: int) -> Dict[TaskStatus, int]:
        ...

    async def count_subtasks(self, user_id: int) -> SubtaskTotals:
        ...


def created_in_window(since: datetime):
    return Task.created_at >= since


def completed_in_window(since: datetime):
    return and_(Task.is_completed.is_(True), Task.updated_at >= since)


class SqlAnalyticsRepository:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def fetch_task_activity(self, user_id: int, since: datetime) -> List[TaskActivity]:
        stmt = select(Task.created_at, Task.updated_at, Task.is_completed).where(
            Task.user_id == user_id,
            or_(created_in_window(since), completed_in_window(since)),
        )
        async with self._session_factory() as session:
            result = await session.exec(stmt)
            rows = result.all()
        return [
            TaskActivity(created_at=created_at, updated_at=updated_at, is_completed=bool(is_completed))
            for created_at, updated_at, is_completed in rows
        ]

    async def fetch_task_completions(self, user_id: int, since: datetime) -> List[TaskActivity]:
        stmt = (
            select(Task.created_at, Task.updated_at)
            .where(Task.user_id == user_id, completed_in_window(since))
            .order_by(Task.updated_at.desc())
        )
        async with self._session_factory() as session:
            result = await session.exec(stmt)
            rows = result.all()
        return [
            TaskActivity(created_at=created_at, updated_at=updated_at, is_completed=True)
            for created_at, updated_at in rows
        ]

    async def fetch_subtask_completions(self, user_id: int, since: datetime) -> List[datetime]:
        stmt = (
            select(Subtask.updated_at)
            .join(Task, Task.id == Subtask.task_id)
            .where(
                Task.user_id == user_id,
                Subtask.is_completed.is_(True),
                Subtask.updated_at >= since,
            )
            .order_by(Subtask.updated_at.desc())
        )
        async with self._session_factory() as session:
            result = await session.exec(stmt)
            return list(result.scalars().all())

    async def count_tasks_by_priority(self, user_id: int) -> Dict[TaskPriority, int]:
        stmt = (
            select(Task.priority, func.count(Task.id))
            .where(Task.user_id == user_id)
            .group_by(Task.priority)
        )
        async with self._session_factory() as session:
            result = await session.exec(stmt)
            rows = result.all()
        return {TaskPriority(priority): count for priority, count in rows}

    async def count_tasks_by_status(self, user_id: int) -> Dict[TaskStatus, int]:
        stmt = (
            select(Task.status, func.count(Task.id))
            .where(Task.user_id == user_id)
            .group_by(Task.status)
        )
        async with self._session_factory() as session:
            result = await session.exec(stmt)
            rows = result.all()
        return {TaskStatus(status): count for status, count in rows}

    async def count_subtasks(self, user_id: int) -> SubtaskTotals:
        stmt = (
            select(
                func.count(Subtask.id).label("total"),
                func.sum(case((Subtask.is_completed.is_(True), 1), else_=0)).label("completed"),
            )
            .select_from(Subtask)
            .join(Task, Task.id == Subtask.task_id)
            .where(Task.user_id == user_id)
        )
        async with self._session_factory() as session:
            result = await session.exec(stmt)
            row = result.one()
        return SubtaskTotals(total=row.total or 0, completed=row.completed or 0)
