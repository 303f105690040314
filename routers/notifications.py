# routers/notifications.py
"""
Notification API routes - the caller's own in-app notifications.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user
from models import Notification, User
from schemas.notification import NotificationResponse, NotificationListResponse
from utils.clock import utc_now
from utils.errors import ErrorCodes, not_found

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse, summary="List my notifications")
def list_notifications(
     unread_only: bool = Query(False),
     limit: int = Query(50, ge=1, le=100),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     query = db.query(Notification).filter(Notification.user_id == user.id)
     unread = query.filter(Notification.is_read.is_(False)).count()
     if unread_only:
          query = query.filter(Notification.is_read.is_(False))
     items = query.order_by(Notification.created_at.desc()).limit(limit).all()
     return NotificationListResponse(
          items=[NotificationResponse.model_validate(n) for n in items],
          unread=unread,
     )


@router.patch("/{notification_id}/read", response_model=NotificationResponse, summary="Mark as read")
def mark_notification_read(
     notification_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     notification = (
          db.query(Notification)
          .filter(Notification.id == notification_id, Notification.user_id == user.id)
          .first()
     )
     if not notification:
          raise not_found("Notification not found", ErrorCodes.RES_NOT_FOUND)
     if not notification.is_read:
          notification.mark_as_read(utc_now())
          db.commit()
     return notification


@router.patch("/read-all", summary="Mark all as read")
def mark_all_read(
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     count = (
          db.query(Notification)
          .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
          .update({Notification.is_read: True, Notification.read_at: utc_now()}, synchronize_session=False)
     )
     db.commit()
     return {"success": True, "updated": count}
