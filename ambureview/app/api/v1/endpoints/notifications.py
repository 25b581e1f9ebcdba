"""
Notification API Endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ambureview.app.db.session import get_db
from ambureview.app.models.enums import UserRole
from ambureview.app.core.guards import require_role, get_current_user
from ambureview.app.services import email_sender
from ambureview.app.services.notification_service import NotificationService, render_email
from ambureview.app.schemas.notification import NotificationResponse, BroadcastRequest, TestEmailRequest

router = APIRouter(prefix="/notifications", tags=["Notifications"])
admin_router = APIRouter(prefix="/admin/notifications", tags=["Admin - Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List current user's notifications, newest first."""
    return await NotificationService.list_for_user(db, current_user["user_id"], unread_only, limit)


@router.patch("/read-all")
async def mark_all_notifications_read(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark all notifications as read."""
    count = await NotificationService.mark_all_read(db, current_user["user_id"])
    await db.commit()
    return {"status": "success", "count": count}


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a specific notification as read."""
    success = await NotificationService.mark_read(db, notification_id, current_user["user_id"])
    if not success:
        raise HTTPException(status_code=404, detail="Notification not found")

    await db.commit()
    return {"status": "success"}


# --- Admin ---

@admin_router.post("/broadcast")
async def broadcast_notification(
    req: BroadcastRequest,
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """Send an in-app notification to every active user, optionally filtered by role."""
    count = await NotificationService.broadcast(
        db, req.title, req.message, req.role_filter, req.type
    )
    await db.commit()
    return {"status": "success", "recipients": count}


@admin_router.post("/test-email")
async def send_test_email(
    req: TestEmailRequest,
    current_user: dict = Depends(require_role([UserRole.ADMIN]))
):
    """Check SMTP delivery. Reports `skipped` when SMTP is not configured."""
    if not email_sender.is_email_enabled():
        return {"status": "skipped", "detail": "SMTP is not configured"}

    html_body = render_email("Test email", ["SMTP delivery from AmbuReview is working."])
    sent = await email_sender.send_email(req.email, "Test email - AmbuReview", html_body)
    return {"status": "sent" if sent else "failed"}
