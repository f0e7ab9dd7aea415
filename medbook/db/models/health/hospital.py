# medbook/db/models/health/hospital.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
import uuid

class Hospital(SQLModel, table=True):
    __tablename__ = "hospitals"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=150)
    email: str = Field(max_length=100, unique=True)
    phone: str = Field(max_length=20)
    province: Optional[str] = None
    district: Optional[str] = None
    sector: Optional[str] = None
    street: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    facilities: str = Field(default="[]")
    registration_number: Optional[str] = Field(max_length=100, default=None)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="hospital")
