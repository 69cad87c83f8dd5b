from typing import Sequence

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.clock import utcnow
from taskmaster.models.task import Subtask, Task
from taskmaster.schemas.subtask import SubtaskCreate, SubtaskReorderItem, SubtaskUpdate


class SubtaskNotFoundError(LookupError):
    pass


class SubtaskAccessError(PermissionError):
    pass


async def _get_owned_task(session: AsyncSession, *, user_id: int, task_id: int) -> Task | None:
    result = await session.exec(select(Task).where(Task.id == task_id, Task.user_id == user_id))
    return result.one_or_none()


async def get_subtask(session: AsyncSession, *, user_id: int, subtask_id: int) -> Subtask | None:
    """Subtask by id, only when its parent task belongs to ``user_id``."""
    stmt = (
        select(Subtask)
        .join(Task, Task.id == Subtask.task_id)
        .where(Subtask.id == subtask_id, Task.user_id == user_id)
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def create_subtask(
    session: AsyncSession,
    *,
    user_id: int,
    task_id: int,
    subtask_in: SubtaskCreate,
) -> Subtask | None:
    task = await _get_owned_task(session, user_id=user_id, task_id=task_id)
    if task is None:
        return None

    result = await session.exec(select(func.max(Subtask.position)).where(Subtask.task_id == task_id))
    highest = result.one_or_none()
    subtask = Subtask(
        task_id=task_id,
        title=subtask_in.title,
        position=(highest if highest is not None else -1) + 1,
    )
    session.add(subtask)
    await session.commit()
    await session.refresh(subtask)
    return subtask


async def update_subtask(
    session: AsyncSession,
    *,
    user_id: int,
    subtask_id: int,
    subtask_in: SubtaskUpdate,
) -> Subtask | None:
    subtask = await get_subtask(session, user_id=user_id, subtask_id=subtask_id)
    if subtask is None:
        return None

    if subtask_in.title is not None:
        subtask.title = subtask_in.title
    if subtask_in.is_completed is not None:
        subtask.is_completed = subtask_in.is_completed
    subtask.updated_at = utcnow()
    session.add(subtask)
    await session.commit()
    await session.refresh(subtask)
    return subtask


async def toggle_subtask_complete(session: AsyncSession, *, user_id: int, subtask_id: int) -> bool | None:
    subtask = await get_subtask(session, user_id=user_id, subtask_id=subtask_id)
    if subtask is None:
        return None

    subtask.is_completed = not subtask.is_completed
    subtask.updated_at = utcnow()
    session.add(subtask)
    await session.commit()
    return subtask.is_completed


async def delete_subtask(session: AsyncSession, *, user_id: int, subtask_id: int) -> bool:
    subtask = await get_subtask(session, user_id=user_id, subtask_id=subtask_id)
    if subtask is None:
        return False
    await session.delete(subtask)
    await session.commit()
    return True


async def reorder_subtasks(session: AsyncSession, *, user_id: int, items: Sequence[SubtaskReorderItem]) -> None:
    """
    Apply new positions.

    Raises:
        SubtaskNotFoundError: an id does not exist
        SubtaskAccessError: a subtask belongs to another user's task
    """
    subtask_ids = {item.id for item in items}
    stmt = (
        select(Subtask, Task.user_id)
        .join(Task, Task.id == Subtask.task_id)
        .where(Subtask.id.in_(tuple(subtask_ids)))
    )
    result = await session.exec(stmt)
    rows = result.all()
    if len(rows) != len(subtask_ids):
        raise SubtaskNotFoundError("One or more subtasks not found")
    if any(owner_id != user_id for _, owner_id in rows):
        raise SubtaskAccessError("Unauthorized access to subtasks")

    subtasks = {subtask.id: subtask for subtask, _ in rows}
    for item in items:
        subtasks[item.id].position = item.position
        session.add(subtasks[item.id])
    await session.commit()
