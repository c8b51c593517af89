"""User Notifications API - In-app notification bell endpoints"""
from fastapi import APIRouter, Depends, Query

from ..deps import get_current_user_dep
from ..responses import success
from ...domain.models import ActorContext
from ...services.notification_service import NotificationService

router = APIRouter()


@router.get("/")
async def get_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    actor: ActorContext = Depends(get_current_user_dep)
):
    """
    Notifications delivered to the current user.

    - Sorted by newest first
    - `unread_count` feeds the notification badge
    """
    return success(NotificationService().get_inbox(actor.user_id, unread_only=unread_only, limit=limit))


@router.post("/read-all")
async def mark_all_read(actor: ActorContext = Depends(get_current_user_dep)):
    count = NotificationService().mark_all_read(actor.user_id)
    return success({"marked_count": count})


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Mark one of the caller's notifications as read"""
    return success(NotificationService().mark_read(notification_id, actor.user_id))
