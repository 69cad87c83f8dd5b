from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.clock import utcnow
from taskmaster.core.config import settings
from taskmaster.db.session import AsyncSessionLocal
from taskmaster.models.notification import Notification, NotificationPreference, NotificationType
from taskmaster.models.task import Task
from taskmaster.services import user_notifications

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def _plural_days(days: int) -> str:
    return f"{days} day{'' if days == 1 else 's'}"


def days_until(due_date: datetime, now: datetime) -> int:
    """Whole days until ``due_date``, rounded up; negative once a full day has passed."""
    return math.ceil((due_date - now).total_seconds() / SECONDS_PER_DAY)


async def notify_task_completed(session: AsyncSession, task: Task) -> None:
    notification = await user_notifications.create_notification(
        session,
        user_id=task.user_id,
        notification_type=NotificationType.TASK_COMPLETED,
        title="Task Completed",
        message=f'"{task.title}" was marked as done',
        task_id=task.id,
    )
    if notification is not None:
        await session.commit()


async def _recently_notified(
    session: AsyncSession,
    *,
    user_id: int,
    task_id: int,
    notification_type: NotificationType,
    since: datetime,
) -> bool:
    stmt = select(Notification.id).where(
        Notification.user_id == user_id,
        Notification.task_id == task_id,
        Notification.type == notification_type,
        Notification.created_at >= since,
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def check_due_date_reminders(session: AsyncSession, now: datetime | None = None) -> int:
    """
    Create due-soon and overdue notifications for incomplete tasks.

    A reminder fires when the task is exactly ``reminder_days_before`` days out;
    an overdue notice fires once the due date is a full day behind. The same
    kind of notification for the same task is not repeated within a day.
    Users without a preference row get the defaults (reminders on).

    Returns the number of notifications created.
    """
    now = now or utcnow()
    dedupe_since = now - timedelta(days=1)

    stmt = (
        select(Task, NotificationPreference)
        .outerjoin(NotificationPreference, NotificationPreference.user_id == Task.user_id)
        .where(Task.is_completed.is_(False), Task.due_date.is_not(None))
        .order_by(Task.user_id, Task.due_date)
    )
    result = await session.exec(stmt)
    rows = result.all()

    created = 0
    for task, prefs in rows:
        if prefs is not None and not prefs.due_date_reminder:
            continue
        reminder_days = prefs.reminder_days_before if prefs is not None else 1
        remaining = days_until(task.due_date, now)

        if remaining == reminder_days:
            notification_type = NotificationType.DUE_DATE_REMINDER
            title = "Task Due Soon"
            message = f'"{task.title}" is due in {_plural_days(reminder_days)}'
        elif remaining < 0:
            notification_type = NotificationType.TASK_OVERDUE
            title = "Task Overdue"
            message = f'"{task.title}" is overdue by {_plural_days(abs(remaining))}'
        else:
            continue

        if await _recently_notified(
            session,
            user_id=task.user_id,
            task_id=task.id,
            notification_type=notification_type,
            since=dedupe_since,
        ):
            continue

        notification = await user_notifications.create_notification(
            session,
            user_id=task.user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            task_id=task.id,
        )
        if notification is not None:
            created += 1

    await session.commit()
    if created:
        logger.info("Created %s due date notifications", created)
    return created


async def process_due_date_reminders() -> None:
    async with AsyncSessionLocal() as session:
        await check_due_date_reminders(session)


async def _loop_worker(task_coro: Callable[[], Awaitable[None]], interval: int, name: str) -> None:
    try:
        while True:
            try:
                await task_coro()
            except Exception:  # pragma: no cover
                logger.exception("%s worker encountered an error", name)
            await asyncio.sleep(interval)
    except asyncio.CancelledError:  # pragma: no cover
        logger.info("%s worker cancelled", name)
        raise


def start_background_tasks() -> list[asyncio.Task]:
    return [
        asyncio.create_task(
            _loop_worker(process_due_date_reminders, settings.REMINDER_POLL_SECONDS, "due-date-reminders")
        ),
    ]
