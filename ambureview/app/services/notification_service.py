"""
Notification Service.

`NotificationService` manages in-app notification rows.
`NotificationDispatcher` fans an event out to every channel: one in-app
row per recipient, an email per recipient address and a WebSocket message
on the ambulance channel. Channel failures are logged and never abort the
caller.
"""

import html
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc

from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.enums import UserRole
from ambureview.app.models.incident import Incident
from ambureview.app.models.notification import Notification, NotificationType
from ambureview.app.models.user import User
from ambureview.app.services import email_sender
from ambureview.app.services.config_defaults import NOTIFICATION_EMAIL_KEY
from ambureview.app.services.config_store import config_store
from ambureview.app.services.realtime import ConnectionManager, connection_manager

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()  # Caller commits
        return notif

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: int, unread_only: bool = False, limit: int = 50):
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)
        query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def broadcast(
        db: AsyncSession,
        title: str,
        message: str,
        role: Optional[UserRole] = None,
        type: NotificationType = NotificationType.INFO
    ) -> int:
        """Broadcast notification to all active users or filtered by role."""
        query = select(User.id).where(User.is_active == True)
        if role:
            query = query.where(User.role == role)

        result = await db.execute(query)
        user_ids = result.scalars().all()

        notifications = [
            Notification(
                user_id=uid,
                title=title,
                message=message,
                type=type
            )
            for uid in user_ids
        ]

        if notifications:
            db.add_all(notifications)

        return len(notifications)

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).values(
            is_read=True,
            read_at=datetime.utcnow()
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.utcnow()
        )
        result = await db.execute(stmt)
        return result.rowcount


async def resolve_recipients(db: AsyncSession, ambulance_id: Optional[int]) -> List[User]:
    """
    Active users assigned to the ambulance, falling back to every active
    coordinator and admin when nobody is assigned.
    """
    if ambulance_id is not None:
        result = await db.execute(
            select(User).where(
                User.assigned_ambulance_id == ambulance_id,
                User.is_active == True
            ).order_by(User.id)
        )
        assigned = list(result.scalars().all())
        if assigned:
            return assigned

    result = await db.execute(
        select(User).where(
            User.role.in_([UserRole.ADMIN, UserRole.COORDINATOR]),
            User.is_active == True
        ).order_by(User.id)
    )
    return list(result.scalars().all())


def render_email(title: str, lines: List[str]) -> str:
    body = "".join(f"<p>{html.escape(line)}</p>" for line in lines)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"<h2>{html.escape(title)}</h2>{body}<hr>"
        '<p style="color: #666; font-size: 12px;">AmbuReview - Ambulance Fleet Management</p>'
        "</div>"
    )


class NotificationDispatcher:
    """
    Notification sink used by the job runner and incident creation.

    `dispatch(db, recipients, kind, payload)` delivers one event. The caller
    owns the transaction; in-app rows are flushed, not committed.
    """

    def __init__(self, connections: ConnectionManager = connection_manager, send_email=None):
        self.connections = connections
        self._send_email = send_email or email_sender.send_email

    async def dispatch(
        self,
        db: AsyncSession,
        recipients: List[User],
        kind: NotificationType,
        payload: Dict[str, Any],
    ) -> Dict[str, int]:
        """
        Deliver an event on every channel.

        Payload keys used: title, message, ambulance_id (optional).
        Returns per-channel delivery counts.
        """
        title = payload["title"]
        message = payload["message"]
        ambulance_id = payload.get("ambulance_id")
        counts = {"in_app": 0, "email": 0, "realtime": 0}

        for user in recipients:
            await NotificationService.create_notification(
                db, user.id, title, message, type=kind, metadata=payload
            )
            counts["in_app"] += 1

        addresses = [user.email for user in recipients if user.email]
        extra = await config_store.get(db, NOTIFICATION_EMAIL_KEY)
        if extra and extra not in addresses:
            addresses.append(extra)

        email_html = render_email(title, [message])
        for address in addresses:
            try:
                if await self._send_email(address, f"{title} - AmbuReview", email_html):
                    counts["email"] += 1
            except Exception:
                logger.exception("Email channel failed for %s", address)

        if ambulance_id is not None:
            try:
                counts["realtime"] = await self.connections.send_to_ambulance(
                    ambulance_id, {"type": kind.value, "data": payload}
                )
            except Exception:
                logger.exception("Realtime channel failed for ambulance %s", ambulance_id)

        logger.info(
            "Dispatched %s '%s': in_app=%d email=%d realtime=%d",
            kind.value, title, counts["in_app"], counts["email"], counts["realtime"]
        )
        return counts

    async def _ambulance_label(self, db: AsyncSession, ambulance_id: Optional[int]) -> str:
        if ambulance_id is None:
            return "unassigned"
        ambulance = await db.get(Ambulance, ambulance_id)
        if ambulance is None:
            return f"#{ambulance_id}"
        return f"{ambulance.name or ambulance.code} ({ambulance.plate})"

    async def send_expiry_alert(
        self, db: AsyncSession, ambulance_id: int, material_name: str, days_until_expiry: int
    ) -> Dict[str, int]:
        label = await self._ambulance_label(db, ambulance_id)
        if days_until_expiry < 0:
            message = f"{material_name} in {label} has expired"
        else:
            message = f"{material_name} in {label} expires in {days_until_expiry} day(s)"
        recipients = await resolve_recipients(db, ambulance_id)
        return await self.dispatch(db, recipients, NotificationType.EXPIRY_ALERT, {
            "title": f"Expiry alert - {label}",
            "message": message,
            "ambulance_id": ambulance_id,
            "material_name": material_name,
            "days_until_expiry": days_until_expiry,
        })

    async def send_incident_alert(self, db: AsyncSession, incident: Incident) -> Dict[str, int]:
        label = await self._ambulance_label(db, incident.ambulance_id)
        recipients = await resolve_recipients(db, incident.ambulance_id)
        if incident.responsible_id is not None and all(u.id != incident.responsible_id for u in recipients):
            responsible = await db.get(User, incident.responsible_id)
            if responsible is not None and responsible.is_active:
                recipients.append(responsible)
        return await self.dispatch(db, recipients, NotificationType.INCIDENT, {
            "title": f"[{incident.severity.value}] {incident.title}",
            "message": incident.description or incident.title,
            "ambulance_id": incident.ambulance_id,
            "ambulance": label,
            "incident_id": incident.id,
            "incident_type": incident.type.value,
            "severity": incident.severity.value,
            "due_date": incident.due_date.isoformat() if incident.due_date else None,
        })


notification_dispatcher = NotificationDispatcher()
