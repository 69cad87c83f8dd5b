from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.clock import utcnow
from taskmaster.models.task import Subtask, Tag, Task, TaskStatus
from taskmaster.schemas.task import (
    SubtaskCounts,
    TaskCounts,
    TaskCreate,
    TaskReorderItem,
    TaskStatsResponse,
    TaskUpdate,
)
from taskmaster.services import notifications as notifications_service


def _task_query():
    # populate_existing refreshes relationships on rows already in the identity map
    return (
        select(Task)
        .options(selectinload(Task.tags), selectinload(Task.subtasks))
        .execution_options(populate_existing=True)
    )


async def list_tasks(
    session: AsyncSession,
    *,
    user_id: int,
    status: Optional[TaskStatus] = None,
) -> list[Task]:
    stmt = _task_query().where(Task.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
        stmt = stmt.order_by(Task.sort_order.asc(), Task.created_at.desc())
    else:
        stmt = stmt.order_by(Task.status.asc(), Task.sort_order.asc(), Task.created_at.desc())
    result = await session.exec(stmt)
    return list(result.all())


async def get_task(session: AsyncSession, *, user_id: int, task_id: int) -> Task | None:
    stmt = (
        _task_query()
        .where(Task.id == task_id, Task.user_id == user_id)
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def get_task_stats(session: AsyncSession, *, user_id: int) -> TaskStatsResponse:
    async def _count_tasks(*criteria) -> int:
        result = await session.exec(select(func.count(Task.id)).where(Task.user_id == user_id, *criteria))
        return result.one() or 0

    async def _count_subtasks(*criteria) -> int:
        stmt = (
            select(func.count(Subtask.id))
            .join(Task, Task.id == Subtask.task_id)
            .where(Task.user_id == user_id, *criteria)
        )
        result = await session.exec(stmt)
        return result.one() or 0

    total_tasks = await _count_tasks()
    in_progress_tasks = await _count_tasks(Task.status == TaskStatus.IN_PROGRESS)
    completed_tasks = await _count_tasks(Task.status == TaskStatus.DONE)
    total_subtasks = await _count_subtasks()
    completed_subtasks = await _count_subtasks(Subtask.is_completed.is_(True))

    return TaskStatsResponse(
        total=total_tasks + total_subtasks,
        in_progress=in_progress_tasks,
        completed=completed_tasks + completed_subtasks,
        todo=total_tasks - in_progress_tasks - completed_tasks,
        tasks=TaskCounts(total=total_tasks, completed=completed_tasks, in_progress=in_progress_tasks),
        subtasks=SubtaskCounts(total=total_subtasks, completed=completed_subtasks),
    )


async def _next_sort_order(session: AsyncSession, user_id: int, status: TaskStatus) -> float:
    result = await session.exec(
        select(func.max(Task.sort_order)).where(Task.user_id == user_id, Task.status == status)
    )
    max_value = result.one_or_none()
    return (max_value if max_value is not None else -1) + 1


async def _resolve_tags(session: AsyncSession, names: Sequence[str]) -> list[Tag]:
    if not names:
        return []
    result = await session.exec(select(Tag).where(Tag.name.in_(tuple(names))))
    existing = {tag.name: tag for tag in result.all()}
    tags: list[Tag] = []
    for name in names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            session.add(tag)
            existing[name] = tag
        tags.append(tag)
    return tags


async def create_task(session: AsyncSession, *, user_id: int, task_in: TaskCreate) -> Task:
    task = Task(
        user_id=user_id,
        title=task_in.title,
        description=task_in.description,
        status=task_in.status,
        priority=task_in.priority,
        due_date=task_in.due_date,
        is_completed=task_in.status == TaskStatus.DONE,
        sort_order=await _next_sort_order(session, user_id, task_in.status),
    )
    task.tags = await _resolve_tags(session, task_in.tags)
    session.add(task)
    await session.commit()
    return await get_task(session, user_id=user_id, task_id=task.id)


async def update_task(
    session: AsyncSession,
    *,
    user_id: int,
    task_id: int,
    task_in: TaskUpdate,
) -> Task | None:
    task = await get_task(session, user_id=user_id, task_id=task_id)
    if task is None:
        return None

    updates = task_in.model_dump(exclude_unset=True)
    tags = updates.pop("tags", None)
    is_completed = updates.pop("is_completed", None)
    status = updates.get("status")
    if is_completed is None and status is not None:
        is_completed = status == TaskStatus.DONE

    for field in ("title", "status", "priority"):
        value = updates.get(field)
        if value is not None:
            setattr(task, field, value)
    for field in ("description", "due_date"):
        if field in updates:
            setattr(task, field, updates[field])

    was_completed = task.is_completed
    if is_completed is not None:
        task.is_completed = is_completed
    if tags is not None:
        task.tags = await _resolve_tags(session, tags)
    task.updated_at = utcnow()

    session.add(task)
    await session.commit()
    if task.is_completed and not was_completed:
        await notifications_service.notify_task_completed(session, task)
    return await get_task(session, user_id=user_id, task_id=task_id)


async def delete_task(session: AsyncSession, *, user_id: int, task_id: int) -> bool:
    task = await get_task(session, user_id=user_id, task_id=task_id)
    if task is None:
        return False
    await session.delete(task)
    await session.commit()
    return True


async def toggle_task_complete(session: AsyncSession, *, user_id: int, task_id: int) -> bool | None:
    """Flip completion; the status follows (DONE when completed, TODO otherwise)."""
    task = await get_task(session, user_id=user_id, task_id=task_id)
    if task is None:
        return None

    task.is_completed = not task.is_completed
    task.status = TaskStatus.DONE if task.is_completed else TaskStatus.TODO
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    if task.is_completed:
        await notifications_service.notify_task_completed(session, task)
    return task.is_completed


async def update_task_status(
    session: AsyncSession,
    *,
    user_id: int,
    task_id: int,
    status: TaskStatus,
) -> Task | None:
    task = await get_task(session, user_id=user_id, task_id=task_id)
    if task is None:
        return None

    was_completed = task.is_completed
    task.status = status
    task.is_completed = status == TaskStatus.DONE
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    if task.is_completed and not was_completed:
        await notifications_service.notify_task_completed(session, task)
    return await get_task(session, user_id=user_id, task_id=task_id)


async def reorder_tasks(session: AsyncSession, *, user_id: int, items: Sequence[TaskReorderItem]) -> bool:
    """Apply new sort orders (and optionally statuses). False when any task is not owned by the user."""
    task_ids = {item.id for item in items}
    result = await session.exec(select(Task).where(Task.id.in_(tuple(task_ids)), Task.user_id == user_id))
    tasks = {task.id: task for task in result.all()}
    if len(tasks) != len(task_ids):
        return False

    now = utcnow()
    for item in items:
        task = tasks[item.id]
        task.sort_order = item.sort_order
        if item.status is not None:
            task.status = item.status
            task.is_completed = item.status == TaskStatus.DONE
        task.updated_at = now
        session.add(task)

    await session.commit()
    return True
