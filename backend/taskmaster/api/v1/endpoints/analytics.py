from typing import Annotated

from fastapi import APIRouter, Depends

from taskmaster.api.deps import CurrentUser, get_analytics_service
from taskmaster.schemas.analytics import AnalyticsResult
from taskmaster.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/", response_model=AnalyticsResult)
async def read_analytics(
    current_user: CurrentUser,
    service: Annotated[AnalyticsService, Depends(get_analytics_service)],
) -> AnalyticsResult:
    return await service.get_analytics(current_user)
