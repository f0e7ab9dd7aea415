from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..dependencies import CurrentUser, get_current_user, get_notification_service
from ..schemas.notifications.notification import (
    NotificationListResponse,
    NotificationReadResponse,
    NotificationResponse,
)
from ..services.notifications.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/my", response_model=NotificationListResponse)
async def get_my_notifications(
    limit: int = Query(50, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notifications = await service.list_for_patient(current_user.id, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_model(n) for n in notifications],
        unread=sum(1 for n in notifications if not n.read),
    )


@router.put("/read-all", response_model=NotificationReadResponse)
async def mark_all_notifications_read(
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    count = await service.mark_all_read(current_user.id)
    return NotificationReadResponse(message="All notifications marked as read", updated_count=count)


@router.post("/{notification_id}/read", response_model=NotificationReadResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.mark_read(current_user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationReadResponse(
        message="Notification marked as read",
        notification=NotificationResponse.from_model(notification),
    )
