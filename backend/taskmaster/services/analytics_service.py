"""
Service assembling the analytics dashboard for one user.

Sections are independent read-only computations, so they run concurrently and
are joined before returning. Each section is bounded by a timeout. With
partial results enabled a failing section is reported in ``errors`` and left
null; otherwise the first failure fails the whole result.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from taskmaster.core.clock import utcnow
from taskmaster.core.config import settings
from taskmaster.db.session import SessionFactory
from taskmaster.models.user import User
from taskmaster.schemas.analytics import (
    ActivityDay,
    AnalyticsData,
    AnalyticsResult,
    DailyStats,
    MonthlyStats,
    PriorityDistribution,
    ProductivityStats,
    StatusDistribution,
    WeeklyStats,
)
from taskmaster.services import analytics
from taskmaster.services.analytics import Granularity
from taskmaster.services.analytics_queries import AnalyticsRepository, SqlAnalyticsRepository

logger = logging.getLogger(__name__)

UNAUTHORIZED_ERROR = "Unauthorized"
FETCH_FAILED_ERROR = "Failed to fetch analytics"


class AnalyticsSectionError(Exception):
    def __init__(self, section: str, message: str) -> None:
        super().__init__(f"{section}: {message}")
        self.section = section
        self.message = message


class AnalyticsService:
    def __init__(
        self,
        repository: AnalyticsRepository,
        *,
        clock: Callable[[], datetime] = utcnow,
        section_timeout: Optional[float] = None,
        partial_results: Optional[bool] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._section_timeout = (
            settings.ANALYTICS_SECTION_TIMEOUT_SECONDS if section_timeout is None else section_timeout
        )
        self._partial_results = settings.ANALYTICS_PARTIAL_RESULTS if partial_results is None else partial_results

    async def get_analytics(self, user: Optional[User]) -> AnalyticsResult:
        if user is None or user.id is None:
            return AnalyticsResult.fail(UNAUTHORIZED_ERROR)

        user_id = user.id
        week_starts_on = user.week_starts_on or 0
        now = self._clock()

        sections: Dict[str, Callable[[], Awaitable[Any]]] = {
            "daily": lambda: self.daily(user_id, now),
            "weekly": lambda: self.weekly(user_id, now, week_starts_on),
            "monthly": lambda: self.monthly(user_id, now),
            "priority_distribution": lambda: self.priority_distribution(user_id),
            "status_distribution": lambda: self.status_distribution(user_id),
            "activity_heatmap": lambda: self.activity_heatmap(user_id, now),
            "productivity": lambda: self.productivity(user_id, now, week_starts_on),
        }
        names = list(sections)
        outcomes = await asyncio.gather(
            *(self._run_section(name, sections[name]) for name in names),
            return_exceptions=True,
        )

        values: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, AnalyticsSectionError):
                errors[name] = outcome.message
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                values[name] = outcome

        if errors and not self._partial_results:
            return AnalyticsResult.fail(FETCH_FAILED_ERROR)

        return AnalyticsResult.ok(AnalyticsData(**values, errors=errors))

    async def _run_section(self, name: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await asyncio.wait_for(factory(), timeout=self._section_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Analytics section %s timed out after %.1fs", name, self._section_timeout)
            raise AnalyticsSectionError(name, f"Timed out after {self._section_timeout:g}s") from exc
        except Exception as exc:
            logger.exception("Analytics section %s failed", name)
            raise AnalyticsSectionError(name, f"Failed to load {name.replace('_', ' ')}") from exc

    async def daily(self, user_id: int, now: datetime) -> List[DailyStats]:
        since = analytics.window_start(now, Granularity.day)
        tasks = await self._repository.fetch_task_activity(user_id, since)
        return analytics.daily_stats(tasks, now)

    async def weekly(self, user_id: int, now: datetime, week_starts_on: int) -> List[WeeklyStats]:
        since = analytics.window_start(now, Granularity.week, week_starts_on)
        tasks = await self._repository.fetch_task_activity(user_id, since)
        return analytics.weekly_stats(tasks, now, week_starts_on)

    async def monthly(self, user_id: int, now: datetime) -> List[MonthlyStats]:
        since = analytics.window_start(now, Granularity.month)
        tasks = await self._repository.fetch_task_activity(user_id, since)
        return analytics.monthly_stats(tasks, now)

    async def priority_distribution(self, user_id: int) -> List[PriorityDistribution]:
        counts = await self._repository.count_tasks_by_priority(user_id)
        return analytics.priority_distribution(counts)

    async def status_distribution(self, user_id: int) -> List[StatusDistribution]:
        counts = await self._repository.count_tasks_by_status(user_id)
        return analytics.status_distribution(counts)

    async def activity_heatmap(self, user_id: int, now: datetime) -> List[ActivityDay]:
        since = analytics.heatmap_window_start(now)
        tasks, subtask_completions = await asyncio.gather(
            self._repository.fetch_task_completions(user_id, since),
            self._repository.fetch_subtask_completions(user_id, since),
        )
        return analytics.build_heatmap((task.updated_at for task in tasks), subtask_completions, now)

    async def productivity(self, user_id: int, now: datetime, week_starts_on: int) -> ProductivityStats:
        since = analytics.heatmap_window_start(now)
        tasks, subtask_completions, subtask_totals = await asyncio.gather(
            self._repository.fetch_task_completions(user_id, since),
            self._repository.fetch_subtask_completions(user_id, since),
            self._repository.count_subtasks(user_id),
        )
        return analytics.build_productivity(tasks, subtask_completions, subtask_totals, now, week_starts_on)


async def get_analytics_data(session_factory: SessionFactory, user: Optional[User]) -> AnalyticsResult:
    service = AnalyticsService(SqlAnalyticsRepository(session_factory))
    return await service.get_analytics(user)
