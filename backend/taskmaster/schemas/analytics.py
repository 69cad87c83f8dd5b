from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from taskmaster.models.task import TaskPriority, TaskStatus

HeatmapLevel = Literal[0, 1, 2, 3, 4]


class DailyStats(BaseModel):
    """Tasks created vs completed on a single calendar day."""

    date: str = Field(..., description="Day label, e.g. 'Mar 5'")
    created: int = Field(..., ge=0, description="Tasks created on this day")
    completed: int = Field(..., ge=0, description="Tasks completed on this day")


class WeeklyStats(BaseModel):
    """Tasks created vs completed within a calendar week."""

    week: str = Field(..., description="Label of the week start, e.g. 'Mar 2'")
    created: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    completion_rate: int = Field(..., ge=0, description="round(completed / created * 100), 0 when nothing was created")


class MonthlyStats(BaseModel):
    """Tasks created vs completed within a calendar month."""

    month: str = Field(..., description="Month label, e.g. 'Mar 2026'")
    created: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    completion_rate: int = Field(..., ge=0)


class PriorityDistribution(BaseModel):
    priority: TaskPriority
    count: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)


class StatusDistribution(BaseModel):
    status: TaskStatus
    count: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)


class ActivityDay(BaseModel):
    """One heatmap cell."""

    date: str = Field(..., description="Calendar day, YYYY-MM-DD")
    count: int = Field(..., ge=0, description="Task and subtask completions on this day")
    level: HeatmapLevel = Field(..., description="Intensity relative to the busiest day (0 = no activity)")


class SubtaskSummary(BaseModel):
    total: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    this_week_completed: int = Field(..., ge=0)


class ProductivityStats(BaseModel):
    current_streak: int = Field(..., ge=0, description="Consecutive days with a completion, ending today or yesterday")
    longest_streak: int = Field(..., ge=0, description="Longest run of completion days in the last 365 days")
    this_week_completed: int = Field(..., ge=0)
    last_week_completed: int = Field(..., ge=0)
    week_over_week_change: int
    average_completion_time: Optional[int] = Field(None, description="Mean hours from creation to completion")
    most_productive_day: Optional[str] = Field(None, description="Weekday name with the most completions")
    subtasks: SubtaskSummary



class AnalyticsData(BaseModel):
    """Composite dashboard payload. A section is null only when it failed and partial results are enabled."""

    daily: Optional[List[DailyStats]] = None
    weekly: Optional[List[WeeklyStats]] = None
    monthly: Optional[List[MonthlyStats]] = None
    priority_distribution: Optional[List[PriorityDistribution]] = None
    status_distribution: Optional[List[StatusDistribution]] = None
    activity_heatmap: Optional[List[ActivityDay]] = None
    productivity: Optional[ProductivityStats] = None
    errors: Dict[str, str] = Field(default_factory=dict, description="Per-section failure messages")


class AnalyticsResult(BaseModel):
    """Discriminated envelope: either ``data`` or ``error`` is set."""

    success: bool
    data: Optional[AnalyticsData] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: AnalyticsData) -> "AnalyticsResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "AnalyticsResult":
        return cls(success=False, error=error)
