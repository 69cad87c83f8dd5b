from datetime import datetime
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskmaster.models.notification import NotificationType

_DIGEST_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class NotificationTaskSummary(BaseModel):
    id: int
    title: str


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType
    title: str
    message: str
    is_read: bool
    task_id: Optional[int] = None
    task: Optional[NotificationTaskSummary] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationRead]
    unread_count: int


class NotificationCountResponse(BaseModel):
    unread_count: int


class NotificationPreferenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    in_app_enabled: bool
    due_date_reminder: bool
    reminder_days_before: int
    daily_digest: bool
    digest_time: Optional[str] = None
    updated_at: datetime


class NotificationPreferenceUpdate(BaseModel):
    in_app_enabled: Optional[bool] = None
    due_date_reminder: Optional[bool] = None
    reminder_days_before: Optional[int] = Field(default=None, ge=0, le=30)
    daily_digest: Optional[bool] = None
    digest_time: Optional[str] = None

    @field_validator("digest_time")
    @classmethod
    def validate_digest_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not _DIGEST_TIME_RE.match(cleaned):
            raise ValueError("Digest time must use HH:MM (24-hour) format")
        return cleaned
