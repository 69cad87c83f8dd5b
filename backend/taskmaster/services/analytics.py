"""
Analytics calculations over a user's task and subtask completions.

Everything here is a pure function of the rows passed in and ``now``; the
queries live in ``analytics_queries`` and the fan-out in ``analytics_service``.

A record's ``updated_at`` is treated as its completion moment whenever it is
marked completed. Timestamps are naive UTC and compared directly.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Set, Tuple, TypeVar

from taskmaster.models.task import TaskPriority, TaskStatus
from taskmaster.schemas.analytics import (
    ActivityDay,
    DailyStats,
    MonthlyStats,
    PriorityDistribution,
    ProductivityStats,
    StatusDistribution,
    SubtaskSummary,
    WeeklyStats,
)

DAILY_WINDOW_DAYS = 30
WEEKLY_WINDOW_WEEKS = 12
MONTHLY_WINDOW_MONTHS = 12
HEATMAP_WINDOW_DAYS = 365
# Ratio of a day's count to the busiest day's count: <= 0.25 -> 1, <= 0.5 -> 2, <= 0.75 -> 3, above -> 4
HEATMAP_LEVEL_THRESHOLDS: Tuple[float, float, float] = (0.25, 0.5, 0.75)

PRIORITY_ORDER: Tuple[TaskPriority, ...] = (
    TaskPriority.LOW,
    TaskPriority.MEDIUM,
    TaskPriority.HIGH,
    TaskPriority.URGENT,
)
STATUS_ORDER: Tuple[TaskStatus, ...] = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE)

# Indexed by date.weekday()
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

E = TypeVar("E", bound=Enum)


class Granularity(str, Enum):
    day = "day"
    week = "week"
    month = "month"


@dataclass(frozen=True)
class TaskActivity:
    """The three task columns the analytics need."""

    created_at: datetime
    updated_at: datetime
    is_completed: bool


@dataclass(frozen=True)
class Bucket:
    start: datetime
    end: datetime  # exclusive
    label: str

    def contains(self, value: datetime) -> bool:
        return self.start <= value < self.end


@dataclass(frozen=True)
class SubtaskTotals:
    total: int
    completed: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """round(part / whole * 100), 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def get_week_start(dt: date, week_starts_on: int) -> date:
    """
    Calculate the start date of the week for a given date.

    Args:
        dt: The date to calculate week start for
        week_starts_on: 0=Sunday, 1=Monday, ..., 6=Saturday
    """
    days_since_week_start = (dt.weekday() + 1 - week_starts_on) % 7
    return dt - timedelta(days=days_since_week_start)


def add_months(month_start: date, months: int) -> date:
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def _month_label(day: date) -> str:
    return f"{day:%b} {day.year}"


def build_buckets(now: datetime, granularity: Granularity, week_starts_on: int = 0) -> List[Bucket]:
    """
    Ordered buckets (oldest first) covering the lookback window up to and including ``now``.

    Day buckets span today-30 .. today (31 buckets); week and month buckets span the
    current unit plus the 12 before it (13 buckets each).
    """
    today = now.date()

    if granularity is Granularity.day:
        days = [today - timedelta(days=offset) for offset in range(DAILY_WINDOW_DAYS, -1, -1)]
        return [
            Bucket(start=start_of_day(day), end=start_of_day(day + timedelta(days=1)), label=_day_label(day))
            for day in days
        ]

    if granularity is Granularity.week:
        current = get_week_start(today, week_starts_on)
        starts = [current - timedelta(weeks=offset) for offset in range(WEEKLY_WINDOW_WEEKS, -1, -1)]
        return [
            Bucket(start=start_of_day(week), end=start_of_day(week + timedelta(days=7)), label=_day_label(week))
            for week in starts
        ]

    current_month = today.replace(day=1)
    months = [add_months(current_month, -offset) for offset in range(MONTHLY_WINDOW_MONTHS, -1, -1)]
    return [
        Bucket(start=start_of_day(month), end=start_of_day(add_months(month, 1)), label=_month_label(month))
        for month in months
    ]


def window_start(now: datetime, granularity: Granularity, week_starts_on: int = 0) -> datetime:
    """Start of the oldest bucket; rows older than this cannot land in any bucket."""
    return build_buckets(now, granularity, week_starts_on)[0].start


def completed_in_window(task: TaskActivity, since: datetime) -> bool:
    return task.is_completed and task.updated_at >= since


def count_bucket(tasks: Sequence[TaskActivity], bucket: Bucket) -> Tuple[int, int]:
    """(created, completed) for one bucket; a task can count toward both."""
    created = sum(1 for task in tasks if bucket.contains(task.created_at))
    completed = sum(1 for task in tasks if task.is_completed and bucket.contains(task.updated_at))
    return created, completed


def daily_stats(tasks: Sequence[TaskActivity], now: datetime) -> List[DailyStats]:
    stats: List[DailyStats] = []
    for bucket in build_buckets(now, Granularity.day):
        created, completed = count_bucket(tasks, bucket)
        stats.append(DailyStats(date=bucket.label, created=created, completed=completed))
    return stats


def weekly_stats(tasks: Sequence[TaskActivity], now: datetime, week_starts_on: int = 0) -> List[WeeklyStats]:
    stats: List[WeeklyStats] = []
    for bucket in build_buckets(now, Granularity.week, week_starts_on):
        created, completed = count_bucket(tasks, bucket)
        stats.append(
            WeeklyStats(
                week=bucket.label,
                created=created,
                completed=completed,
                completion_rate=percentage(completed, created),
            )
        )
    return stats


def monthly_stats(tasks: Sequence[TaskActivity], now: datetime) -> List[MonthlyStats]:
    stats: List[MonthlyStats] = []
    for bucket in build_buckets(now, Granularity.month):
        created, completed = count_bucket(tasks, bucket)
        stats.append(
            MonthlyStats(
                month=bucket.label,
                created=created,
                completed=completed,
                completion_rate=percentage(completed, created),
            )
        )
    return stats


def apportion_percentages(counts: Sequence[int]) -> List[int]:
    """
    Whole percentages for ``counts`` that add up to exactly 100 (all 0 when the total is 0).

    Each share is floored and the leftover points go to the largest remainders,
    earlier entries first on ties.
    """
    total = sum(counts)
    if total <= 0:
        return [0 for _ in counts]

    exact = [count * 100 / total for count in counts]
    shares = [int(math.floor(value)) for value in exact]
    leftover = 100 - sum(shares)
    by_remainder = sorted(range(len(exact)), key=lambda index: (shares[index] - exact[index], index))
    for index in by_remainder[:leftover]:
        shares[index] += 1
    return shares


def build_distribution(categories: Sequence[E], grouped_counts: Mapping[E, int]) -> List[Tuple[E, int, int]]:
    """
    One ``(category, count, percentage)`` per enumerated category, in enumeration order.

    Categories missing from ``grouped_counts`` appear with count 0.
    """
    counts = [grouped_counts.get(category, 0) for category in categories]
    return list(zip(categories, counts, apportion_percentages(counts)))


def priority_distribution(grouped_counts: Mapping[TaskPriority, int]) -> List[PriorityDistribution]:
    return [
        PriorityDistribution(priority=priority, count=count, percentage=pct)
        for priority, count, pct in build_distribution(PRIORITY_ORDER, grouped_counts)
    ]


def status_distribution(grouped_counts: Mapping[TaskStatus, int]) -> List[StatusDistribution]:
    return [
        StatusDistribution(status=status, count=count, percentage=pct)
        for status, count, pct in build_distribution(STATUS_ORDER, grouped_counts)
    ]


def heatmap_days(now: datetime) -> List[date]:
    today = now.date()
    return [today - timedelta(days=offset) for offset in range(HEATMAP_WINDOW_DAYS - 1, -1, -1)]


def heatmap_window_start(now: datetime) -> datetime:
    return start_of_day(now.date() - timedelta(days=HEATMAP_WINDOW_DAYS - 1))


def heatmap_level(count: int, max_count: int) -> int:
    if count <= 0:
        return 0
    ratio = count / max(max_count, 1)
    low, medium, high = HEATMAP_LEVEL_THRESHOLDS
    if ratio <= low:
        return 1
    if ratio <= medium:
        return 2
    if ratio <= high:
        return 3
    return 4


def completions_by_day(*timestamp_groups: Iterable[datetime]) -> Counter:
    counts: Counter = Counter()
    for timestamps in timestamp_groups:
        for value in timestamps:
            counts[value.date()] += 1
    return counts


def build_heatmap(
    task_completions: Iterable[datetime],
    subtask_completions: Iterable[datetime],
    now: datetime,
) -> List[ActivityDay]:
    """Dense per-day completion counts for the trailing year, tasks and subtasks merged."""
    days = heatmap_days(now)
    counts = completions_by_day(task_completions, subtask_completions)
    in_window = [counts.get(day, 0) for day in days]
    max_count = max(in_window + [1])

    return [
        ActivityDay(date=day.isoformat(), count=count, level=heatmap_level(count, max_count))
        for day, count in zip(days, in_window)
    ]


def current_streak(completion_days: Set[date], today: date) -> int:
    """
    Consecutive completion days ending today.

    Today counts as still in progress: when it has no completion yet the walk
    starts from yesterday, so an unbroken run through yesterday is kept. Any
    earlier gap ends the streak.
    """
    day = today
    if day not in completion_days:
        day = today - timedelta(days=1)

    streak = 0
    while day in completion_days and (today - day).days < HEATMAP_WINDOW_DAYS:
        streak += 1
        day -= timedelta(days=1)
    return streak


def longest_streak(completion_days: Set[date], today: date) -> int:
    longest = 0
    run = 0
    for offset in range(HEATMAP_WINDOW_DAYS):
        if today - timedelta(days=offset) in completion_days:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def week_over_week_change(this_week: int, last_week: int) -> int:
    if last_week > 0:
        return round_half_up((this_week - last_week) / last_week * 100)
    return 100 if this_week > 0 else 0


def average_completion_hours(tasks: Iterable[TaskActivity]) -> Optional[int]:
    """Mean of whole hours between creation and completion, ``None`` without completed tasks."""
    hours = [
        int((task.updated_at - task.created_at).total_seconds() / 3600)
        for task in tasks
        if task.is_completed and task.created_at is not None and task.updated_at is not None
    ]
    if not hours:
        return None
    return round_half_up(sum(hours) / len(hours))


def most_productive_day(*timestamp_groups: Iterable[datetime]) -> Optional[str]:
    """Weekday name with the most completions; ties go to the weekday seen first."""
    counts: Counter = Counter()
    for timestamps in timestamp_groups:
        for value in timestamps:
            counts[WEEKDAY_NAMES[value.weekday()]] += 1
    if not counts:
        return None
    return max(counts, key=counts.__getitem__)


def build_productivity(
    task_completions: Sequence[TaskActivity],
    subtask_completions: Sequence[datetime],
    subtask_totals: SubtaskTotals,
    now: datetime,
    week_starts_on: int = 0,
) -> ProductivityStats:
    """
    Streaks, week-over-week, completion latency and weekday stats.

    ``task_completions`` are completed tasks and ``subtask_completions`` the
    completion moments of subtasks, both from the trailing heatmap window.
    """
    today = now.date()
    since = heatmap_window_start(now)
    tasks = sorted(
        (task for task in task_completions if completed_in_window(task, since)),
        key=lambda task: task.updated_at,
        reverse=True,
    )
    subtask_moments = sorted((value for value in subtask_completions if value >= since), reverse=True)
    task_moments = [task.updated_at for task in tasks]

    completion_days = {value.date() for value in task_moments} | {value.date() for value in subtask_moments}

    this_week_start = start_of_day(get_week_start(today, week_starts_on))
    last_week_start = this_week_start - timedelta(days=7)
    this_week = sum(1 for value in task_moments if value >= this_week_start)
    last_week = sum(1 for value in task_moments if last_week_start <= value < this_week_start)

    return ProductivityStats(
        current_streak=current_streak(completion_days, today),
        longest_streak=longest_streak(completion_days, today),
        this_week_completed=this_week,
        last_week_completed=last_week,
        week_over_week_change=week_over_week_change(this_week, last_week),
        average_completion_time=average_completion_hours(tasks),
        most_productive_day=most_productive_day(task_moments, subtask_moments),
        subtasks=SubtaskSummary(
            total=subtask_totals.total,
            completed=subtask_totals.completed,
            this_week_completed=sum(1 for value in subtask_moments if value >= this_week_start),
        ),
    )
