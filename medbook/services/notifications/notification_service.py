# medbook/services/notifications/notification_service.py
from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ...db.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """A patient's in-app notifications. Every query is scoped to the patient."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_patient(self, patient_id: str, limit: int = 50) -> List[Notification]:
        query = (
            select(Notification)
            .where(Notification.patient_id == patient_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list((await self.session.exec(query)).all())

    async def mark_read(self, patient_id: str, notification_id: int) -> Optional[Notification]:
        notification = (
            await self.session.exec(
                select(Notification)
                .where(Notification.id == notification_id)
                .where(Notification.patient_id == patient_id)
            )
        ).first()
        if notification is None:
            return None
        if not notification.read:
            notification.read = True
            notification.read_at = datetime.now(timezone.utc)
            self.session.add(notification)
            await self.session.commit()
            await self.session.refresh(notification)
        return notification

    async def mark_all_read(self, patient_id: str) -> int:
        unread = (
            await self.session.exec(
                select(Notification)
                .where(Notification.patient_id == patient_id)
                .where(Notification.read == False)  # noqa: E712
            )
        ).all()
        now = datetime.now(timezone.utc)
        for notification in unread:
            notification.read = True
            notification.read_at = now
            self.session.add(notification)
        await self.session.commit()
        logger.info(f"Marked {len(unread)} notifications read for {patient_id}")
        return len(unread)
