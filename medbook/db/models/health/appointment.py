# medbook/db/models/health/appointment.py
from typing import Optional
from sqlalchemy import Index
from sqlmodel import SQLModel, Field, Relationship
from datetime import date, datetime, timezone

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_hospital_date_status", "hospital_id", "appointment_date", "status"),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    reference: str = Field(max_length=50, unique=True, index=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    hospital_id: str = Field(foreign_key="hospitals.id", index=True)
    test_id: str = Field(foreign_key="medical_tests.id")
    appointment_date: date
    time_slot: str = Field(max_length=20)
    status: str = Field(default="pending", max_length=20)
    patient_name: Optional[str] = Field(max_length=100, default=None)
    patient_phone: Optional[str] = Field(max_length=20, default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    patient: Optional["User"] = Relationship(back_populates="appointments")
    hospital: Optional["Hospital"] = Relationship(back_populates="appointments")
    medical_test: Optional["MedicalTest"] = Relationship(back_populates="appointments")
