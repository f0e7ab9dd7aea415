from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import datetime, date


@dataclass
class HospitalDto:
    id: str
    name: str
    province: Optional[str] = None
    district: Optional[str] = None
    sector: Optional[str] = None
    street: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class MedicalTestDto:
    id: str
    name: str
    category: str
    price: float
    duration: Optional[str]


@dataclass
class PatientDto:
    id: str
    name: str
    email: Optional[str]
    phone: Optional[str]


@dataclass
class BookedSlot:
    id: int
    time_slot: str
    duration: Optional[str]


@dataclass
class AppointmentDto:
    id: int
    reference: str
    patient_id: str
    hospital_id: str
    test_id: str
    appointment_date: date
    time_slot: str
    status: str
    patient_name: Optional[str]
    patient_phone: Optional[str]
    created_at: datetime
    updated_at: datetime
    hospital: Optional[HospitalDto] = None
    medical_test: Optional[MedicalTestDto] = None
    patient: Optional[PatientDto] = None


class AppointmentsRepository(Protocol):
    async def get_hospital(self, hospital_id: str) -> Optional[HospitalDto]:
        ...

    async def get_test(self, test_id: str) -> Optional[MedicalTestDto]:
        ...

    async def lock_schedule(self, hospital_id: str, appointment_date: date) -> None:
        ...

    async def list_booked(self, hospital_id: str, appointment_date: date) -> List[BookedSlot]:
        """Non-cancelled bookings for the hospital and day, with their test durations."""
        ...

    async def create(
        self,
        reference: str,
        patient_id: str,
        patient_name: Optional[str],
        patient_phone: Optional[str],
        hospital_id: str,
        test_id: str,
        appointment_date: date,
        time_slot: str,
    ) -> AppointmentDto:
        """Insert a pending appointment. Raises ReferenceCollision on a duplicate reference."""
        ...

    async def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    async def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        ...

    async def get_for_patient(self, appointment_id: int, patient_id: str) -> Optional[AppointmentDto]:
        ...

    async def get_by_reference_for_patient(self, reference: str, patient_id: str) -> Optional[AppointmentDto]:
        ...

    async def list_all(self, status: Optional[str] = None) -> List[AppointmentDto]:
        ...

    async def update_status(self, appointment_id: int, status: str) -> Optional[AppointmentDto]:
        ...
