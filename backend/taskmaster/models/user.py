from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, Integer, String
from sqlmodel import Field, Relationship, SQLModel

from taskmaster.core.clock import utcnow
from taskmaster.models.task import Task


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True, index=True))
    name: Optional[str] = Field(default=None)
    image: Optional[str] = Field(default=None, sa_column=Column(String(2048), nullable=True))
    # 0=Sunday, 1=Monday, ..., 6=Saturday
    week_starts_on: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
    )
    is_active: bool = Field(default=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False, onupdate=utcnow),
    )

    tasks: List[Task] = Relationship(back_populates="owner")
