# medbook/schemas/appointments/appointment.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime


class AppointmentCreate(BaseModel):
    # Presence is checked by the booking service so missing fields get a 400 naming them
    hospital_id: Optional[str] = None
    test_id: Optional[str] = None
    appointment_date: Optional[str] = None  # YYYY-MM-DD
    time_slot: Optional[str] = None  # HH:MM, 24-hour


class HospitalSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    province: Optional[str] = None
    district: Optional[str] = None
    sector: Optional[str] = None
    street: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class MedicalTestSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str
    price: float
    duration: Optional[str] = None


class PatientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference: str
    patient_id: str
    hospital_id: str
    test_id: str
    appointment_date: date
    time_slot: str
    status: str
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    hospital: Optional[HospitalSummary] = None
    medical_test: Optional[MedicalTestSummary] = None
    patient: Optional[PatientSummary] = None


class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: List[AppointmentResponse]


class AppointmentStatusUpdate(BaseModel):
    status: str


class AppointmentStatusResponse(BaseModel):
    success: bool = True
    message: str
    appointment: AppointmentResponse


class AvailabilityResponse(BaseModel):
    success: bool = True
    hospital_id: str
    date: str  # YYYY-MM-DD
    duration: int
    slots: List[str]
    opens: str
    closes: str


class AvailabilityConfig(BaseModel):
    allowedDays: List[str]
    opens: str
    closes: str
    stepMinutes: int
    defaultDurationMinutes: int


class AvailabilityConfigResponse(BaseModel):
    success: bool = True
    availability: AvailabilityConfig
