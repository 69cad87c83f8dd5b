from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskmaster.models.task import TaskPriority, TaskStatus
from taskmaster.schemas.subtask import SubtaskRead


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _normalize_tags(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    seen: list[str] = []
    for item in value:
        cleaned = item.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        return _normalize_tags(value) or []

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    is_completed: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _normalize_tags(value)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskReorderItem(BaseModel):
    id: int
    sort_order: int = Field(ge=0)
    status: Optional[TaskStatus] = None


class TaskReorderRequest(BaseModel):
    items: List[TaskReorderItem] = Field(min_length=1)


class TagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    is_completed: bool
    due_date: Optional[datetime] = None
    sort_order: float
    tags: List[TagRead] = Field(default_factory=list)
    subtasks: List[SubtaskRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TaskCompletionToggle(BaseModel):
    is_completed: bool


class TaskCounts(BaseModel):
    total: int
    completed: int
    in_progress: int


class SubtaskCounts(BaseModel):
    total: int
    completed: int


class TaskStatsResponse(BaseModel):
    """Combined task and subtask counters for the header cards."""

    total: int
    in_progress: int
    completed: int
    todo: int
    tasks: TaskCounts
    subtasks: SubtaskCounts
