"""Import all models for Alembic or metadata creation."""

from taskmaster.models.notification import Notification, NotificationPreference
from taskmaster.models.task import Subtask, Tag, Task, TaskTag
from taskmaster.models.user import User

__all__ = [
    "User",
    "Task",
    "Subtask",
    "Tag",
    "TaskTag",
    "Notification",
    "NotificationPreference",
]
