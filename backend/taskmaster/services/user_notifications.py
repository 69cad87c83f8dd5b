from sqlalchemy import delete, func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.clock import utcnow
from taskmaster.models.notification import Notification, NotificationPreference, NotificationType
from taskmaster.models.task import Task
from taskmaster.schemas.notification import (
    NotificationPreferenceUpdate,
    NotificationRead,
    NotificationTaskSummary,
)

LIST_LIMIT = 50


def _to_read(notification: Notification, task_title: str | None) -> NotificationRead:
    read = NotificationRead.model_validate(notification)
    if notification.task_id is not None and task_title is not None:
        read.task = NotificationTaskSummary(id=notification.task_id, title=task_title)
    return read


async def get_preferences(session: AsyncSession, *, user_id: int) -> NotificationPreference | None:
    result = await session.exec(select(NotificationPreference).where(NotificationPreference.user_id == user_id))
    return result.one_or_none()


async def get_or_create_preferences(session: AsyncSession, *, user_id: int) -> NotificationPreference:
    prefs = await get_preferences(session, user_id=user_id)
    if prefs is not None:
        return prefs
    prefs = NotificationPreference(user_id=user_id)
    session.add(prefs)
    await session.commit()
    await session.refresh(prefs)
    return prefs


async def update_preferences(
    session: AsyncSession,
    *,
    user_id: int,
    prefs_in: NotificationPreferenceUpdate,
) -> NotificationPreference:
    prefs = await get_preferences(session, user_id=user_id)
    if prefs is None:
        prefs = NotificationPreference(user_id=user_id)
    for field, value in prefs_in.model_dump(exclude_unset=True).items():
        if value is None and field != "digest_time":
            continue
        setattr(prefs, field, value)
    prefs.updated_at = utcnow()
    session.add(prefs)
    await session.commit()
    await session.refresh(prefs)
    return prefs


async def create_notification(
    session: AsyncSession,
    *,
    user_id: int,
    notification_type: NotificationType,
    title: str,
    message: str,
    task_id: int | None = None,
) -> Notification | None:
    """Queue an in-app notification; returns ``None`` when the user turned them off."""
    prefs = await get_preferences(session, user_id=user_id)
    if prefs is not None and not prefs.in_app_enabled:
        return None

    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        task_id=task_id,
    )
    session.add(notification)
    await session.flush()
    return notification


async def list_notifications(
    session: AsyncSession,
    *,
    user_id: int,
    limit: int = LIST_LIMIT,
) -> tuple[list[NotificationRead], int]:
    stmt = (
        select(Notification, Task.title)
        .outerjoin(Task, Task.id == Notification.task_id)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    result = await session.exec(stmt)
    notifications = [_to_read(notification, task_title) for notification, task_title in result.all()]
    return notifications, await unread_count(session, user_id=user_id)


async def unread_count(session: AsyncSession, *, user_id: int) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    result = await session.exec(stmt)
    return result.one() or 0


async def mark_notification_read(
    session: AsyncSession,
    *,
    user_id: int,
    notification_id: int,
) -> Notification | None:
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    )
    result = await session.exec(stmt)
    notification = result.one_or_none()
    if notification is None:
        return None
    if not notification.is_read:
        notification.is_read = True
        session.add(notification)
        await session.commit()
        await session.refresh(notification)
    return notification


async def mark_all_notifications_read(session: AsyncSession, *, user_id: int) -> int:
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await session.exec(stmt)
    await session.commit()
    return result.rowcount or 0


async def delete_notification(session: AsyncSession, *, user_id: int, notification_id: int) -> bool:
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    )
    result = await session.exec(stmt)
    notification = result.one_or_none()
    if notification is None:
        return False
    await session.delete(notification)
    await session.commit()
    return True


async def clear_notifications(session: AsyncSession, *, user_id: int) -> int:
    result = await session.exec(delete(Notification).where(Notification.user_id == user_id))
    await session.commit()
    return result.rowcount or 0
