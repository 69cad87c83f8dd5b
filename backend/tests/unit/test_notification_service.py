"""
Unit tests for the notification services.

Tests notification bookkeeping and the due date reminder sweep including:
- Creating notifications subject to the in-app preference
- Due-soon and overdue detection
- Not repeating a reminder within a day
"""

from datetime import datetime, timedelta

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.clock import utcnow
from taskmaster.models.notification import Notification, NotificationPreference, NotificationType
from taskmaster.models.task import TaskStatus
from taskmaster.services import notifications as notifications_service
from taskmaster.services import user_notifications
from taskmaster.testing import create_notification, create_task, create_user


async def _notifications_for(session: AsyncSession, user_id: int) -> list[Notification]:
    result = await session.exec(
        select(Notification).where(Notification.user_id == user_id).order_by(Notification.id)
    )
    return list(result.all())


class TestDaysUntil:
    """Tests for whole-day distance to a due date."""

    def test_rounds_partial_days_up(self):
        now = datetime(2026, 3, 18, 12)

        assert notifications_service.days_until(now + timedelta(hours=23), now) == 1
        assert notifications_service.days_until(now + timedelta(days=1, hours=1), now) == 2

    def test_same_day_past_due_is_not_negative(self):
        now = datetime(2026, 3, 18, 12)

        assert notifications_service.days_until(now - timedelta(hours=1), now) == 0

    def test_full_days_overdue(self):
        now = datetime(2026, 3, 18, 12)

        assert notifications_service.days_until(now - timedelta(days=2, hours=1), now) == -2


@pytest.mark.unit
async def test_create_notification_respects_in_app_preference(session: AsyncSession):
    """Test that nothing is queued when in-app notifications are off."""
    user = await create_user(session)
    session.add(NotificationPreference(user_id=user.id, in_app_enabled=False))
    await session.commit()

    notification = await user_notifications.create_notification(
        session,
        user_id=user.id,
        notification_type=NotificationType.SYSTEM,
        title="Hello",
        message="World",
    )

    assert notification is None


@pytest.mark.unit
async def test_list_notifications_includes_task_summary(session: AsyncSession):
    """Test that listing attaches the related task and counts unread."""
    user = await create_user(session)
    task = await create_task(session, user, title="Write report")
    await create_notification(session, user, task_id=task.id, is_read=True)
    await create_notification(session, user)

    notifications, unread = await user_notifications.list_notifications(session, user_id=user.id)

    assert unread == 1
    assert len(notifications) == 2
    with_task = [item for item in notifications if item.task_id == task.id]
    assert with_task[0].task.title == "Write report"


@pytest.mark.unit
async def test_reminder_for_task_due_tomorrow(session: AsyncSession):
    """Test that a task due within a day gets a due-soon reminder."""
    now = utcnow()
    user = await create_user(session)
    task = await create_task(session, user, title="Pay rent", due_date=now + timedelta(hours=20))

    created = await notifications_service.check_due_date_reminders(session, now=now)

    assert created == 1
    notifications = await _notifications_for(session, user.id)
    assert notifications[0].type == NotificationType.DUE_DATE_REMINDER
    assert notifications[0].task_id == task.id
    assert notifications[0].message == '"Pay rent" is due in 1 day'


@pytest.mark.unit
async def test_overdue_notification(session: AsyncSession):
    """Test that a task a full day past due gets an overdue notice."""
    now = utcnow()
    user = await create_user(session)
    await create_task(session, user, title="File taxes", due_date=now - timedelta(days=2, hours=1))

    created = await notifications_service.check_due_date_reminders(session, now=now)

    assert created == 1
    notifications = await _notifications_for(session, user.id)
    assert notifications[0].type == NotificationType.TASK_OVERDUE
    assert notifications[0].message == '"File taxes" is overdue by 2 days'


@pytest.mark.unit
async def test_reminder_uses_days_before_preference(session: AsyncSession):
    """Test that the reminder fires at the user's chosen lead time only."""
    now = utcnow()
    user = await create_user(session)
    session.add(NotificationPreference(user_id=user.id, reminder_days_before=3))
    await session.commit()
    await create_task(session, user, title="Soon", due_date=now + timedelta(hours=20))
    await create_task(session, user, title="Later", due_date=now + timedelta(days=2, hours=20))

    created = await notifications_service.check_due_date_reminders(session, now=now)

    assert created == 1
    notifications = await _notifications_for(session, user.id)
    assert notifications[0].message == '"Later" is due in 3 days'


@pytest.mark.unit
async def test_reminders_skip_completed_and_disabled(session: AsyncSession):
    """Test that completed tasks and opted-out users get nothing."""
    now = utcnow()
    done_user = await create_user(session)
    await create_task(session, done_user, status=TaskStatus.DONE, due_date=now - timedelta(days=3))

    opted_out = await create_user(session)
    session.add(NotificationPreference(user_id=opted_out.id, due_date_reminder=False))
    await session.commit()
    await create_task(session, opted_out, due_date=now - timedelta(days=3))

    created = await notifications_service.check_due_date_reminders(session, now=now)

    assert created == 0


@pytest.mark.unit
async def test_reminders_are_not_repeated_within_a_day(session: AsyncSession):
    """Test that a second sweep does not duplicate notifications."""
    now = utcnow()
    user = await create_user(session)
    await create_task(session, user, due_date=now - timedelta(days=2, hours=1))

    first = await notifications_service.check_due_date_reminders(session, now=now)
    second = await notifications_service.check_due_date_reminders(session, now=now + timedelta(hours=1))

    assert first == 1
    assert second == 0
