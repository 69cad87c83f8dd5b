from fastapi import APIRouter, HTTPException, Query, Response, status

from taskmaster.api.deps import CurrentUser, SessionDep
from taskmaster.models.notification import Notification, NotificationPreference
from taskmaster.schemas.notification import (
    NotificationCountResponse,
    NotificationListResponse,
    NotificationPreferenceRead,
    NotificationPreferenceUpdate,
    NotificationRead,
)
from taskmaster.services import user_notifications as notifications_service

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    session: SessionDep,
    current_user: CurrentUser,
    limit: int = Query(default=notifications_service.LIST_LIMIT, ge=1, le=100),
) -> NotificationListResponse:
    notifications, unread_count = await notifications_service.list_notifications(
        session,
        user_id=current_user.id,
        limit=limit,
    )
    return NotificationListResponse(notifications=notifications, unread_count=unread_count)


@router.get("/unread-count", response_model=NotificationCountResponse)
async def unread_notifications_count(session: SessionDep, current_user: CurrentUser) -> NotificationCountResponse:
    count = await notifications_service.unread_count(session, user_id=current_user.id)
    return NotificationCountResponse(unread_count=count)


@router.post("/read-all", response_model=NotificationCountResponse)
async def mark_all_notifications_read(session: SessionDep, current_user: CurrentUser) -> NotificationCountResponse:
    await notifications_service.mark_all_notifications_read(session, user_id=current_user.id)
    count = await notifications_service.unread_count(session, user_id=current_user.id)
    return NotificationCountResponse(unread_count=count)


@router.get("/preferences", response_model=NotificationPreferenceRead)
async def read_notification_preferences(session: SessionDep, current_user: CurrentUser) -> NotificationPreference:
    return await notifications_service.get_or_create_preferences(session, user_id=current_user.id)


@router.patch("/preferences", response_model=NotificationPreferenceRead)
async def update_notification_preferences(
    prefs_in: NotificationPreferenceUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> NotificationPreference:
    return await notifications_service.update_preferences(session, user_id=current_user.id, prefs_in=prefs_in)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> Notification:
    notification = await notifications_service.mark_notification_read(
        session,
        user_id=current_user.id,
        notification_id=notification_id,
    )
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: int, session: SessionDep, current_user: CurrentUser) -> Response:
    deleted = await notifications_service.delete_notification(
        session,
        user_id=current_user.id,
        notification_id=notification_id,
    )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_notifications(session: SessionDep, current_user: CurrentUser) -> Response:
    await notifications_service.clear_notifications(session, user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
