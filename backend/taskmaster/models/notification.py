from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlmodel import Field, SQLModel

from taskmaster.core.clock import utcnow


class NotificationType(str, Enum):
    DUE_DATE_REMINDER = "DUE_DATE_REMINDER"
    TASK_OVERDUE = "TASK_OVERDUE"
    DAILY_DIGEST = "DAILY_DIGEST"
    TASK_COMPLETED = "TASK_COMPLETED"
    SYSTEM = "SYSTEM"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    type: NotificationType = Field(
        sa_column=Column(String(64), nullable=False),
        default=NotificationType.SYSTEM,
    )
    title: str = Field(sa_column=Column(String(200), nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))
    is_read: bool = Field(default=False, nullable=False)
    task_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False),
    )


class NotificationPreference(SQLModel, table=True):
    __tablename__ = "notification_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, unique=True)
    in_app_enabled: bool = Field(default=True, nullable=False)
    due_date_reminder: bool = Field(default=True, nullable=False)
    reminder_days_before: int = Field(default=1, nullable=False)
    daily_digest: bool = Field(default=False, nullable=False)
    digest_time: Optional[str] = Field(default=None, sa_column=Column(String(5), nullable=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False, onupdate=utcnow),
    )
