from datetime import datetime
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlmodel import Enum as SQLEnum, Field, Relationship, SQLModel

from taskmaster.core.clock import utcnow

if TYPE_CHECKING:  # pragma: no cover
    from taskmaster.models.user import User


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskTag(SQLModel, table=True):
    __tablename__ = "task_tags"

    task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    )
    tag_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    )


class Tag(SQLModel, table=True):
    __tablename__ = "tags"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(64), nullable=False, unique=True))

    tasks: List["Task"] = Relationship(back_populates="tags", link_model=TaskTag)


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(sa_column=Column(String(100), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status: TaskStatus = Field(
        default=TaskStatus.TODO,
        sa_column=Column(SQLEnum(TaskStatus, name="task_status"), nullable=False),
    )
    priority: TaskPriority = Field(
        default=TaskPriority.MEDIUM,
        sa_column=Column(SQLEnum(TaskPriority, name="task_priority"), nullable=False),
    )
    is_completed: bool = Field(default=False, nullable=False)
    due_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(), nullable=True))
    sort_order: float = Field(
        default=0,
        sa_column=Column(Float, nullable=False, server_default="0"),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False, index=True),
    )
    # Stands in for the completion moment whenever is_completed is true
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False, onupdate=utcnow, index=True),
    )

    owner: Optional["User"] = Relationship(back_populates="tasks")
    tags: List[Tag] = Relationship(back_populates="tasks", link_model=TaskTag)
    subtasks: List["Subtask"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "Subtask.position",
        },
    )


class Subtask(SQLModel, table=True):
    __tablename__ = "subtasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    title: str = Field(sa_column=Column(String(100), nullable=False))
    is_completed: bool = Field(default=False, nullable=False)
    position: int = Field(default=0, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False, onupdate=utcnow, index=True),
    )

    task: Optional[Task] = Relationship(back_populates="subtasks")
