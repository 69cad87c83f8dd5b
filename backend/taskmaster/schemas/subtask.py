from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubtaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)


class SubtaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    is_completed: Optional[bool] = None


class SubtaskReorderItem(BaseModel):
    id: int
    position: int = Field(ge=0)


class SubtaskReorderRequest(BaseModel):
    items: list[SubtaskReorderItem] = Field(min_length=1)


class SubtaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_schema_serialization_defaults_required=True)

    id: int
    task_id: int
    title: str
    is_completed: bool = False
    position: int
    created_at: datetime
    updated_at: datetime
