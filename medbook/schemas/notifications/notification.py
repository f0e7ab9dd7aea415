# medbook/schemas/notifications/notification.py
import json
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime


def _loads(value: Optional[str], default):
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return default


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    data: Dict[str, Any] = {}
    channels: List[str] = []
    priority: str
    read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_model(cls, n) -> "NotificationResponse":
        return cls(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            data=_loads(n.data, {}),
            channels=_loads(n.channels, []),
            priority=n.priority,
            read=n.read,
            read_at=n.read_at,
            created_at=n.created_at,
        )


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread: int


class NotificationReadResponse(BaseModel):
    success: bool = True
    message: str
    notification: Optional[NotificationResponse] = None
    updated_count: Optional[int] = None
