# medbook/db/models/health/notification.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"
    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    type: str = Field(max_length=40)
    title: str = Field(max_length=200)
    message: str = Field(max_length=1000)
    data: str = Field(default="{}")
    channels: str = Field(default="[]")
    delivery_status: str = Field(default="{}")
    priority: str = Field(default="medium", max_length=10)
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: Optional[datetime] = None
