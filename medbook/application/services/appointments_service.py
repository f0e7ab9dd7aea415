from dataclasses import dataclass
from typing import Callable, List, Optional

from ..errors import NotFoundError, ValidationError
from ..ports.appointments_repo import AppointmentDto
from ..ports.unit_of_work import UnitOfWork

APPOINTMENT_STATUSES = ("pending", "confirmed", "cancelled", "completed", "rescheduled")


@dataclass
class AppointmentsService:
    uow_factory: Callable[[], UnitOfWork]

    async def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        async with self.uow_factory() as uow:
            return await uow.appointments.list_for_patient(patient_id)

    async def get_for_patient(self, patient_id: str, appointment_id: int) -> AppointmentDto:
        async with self.uow_factory() as uow:
            appt = await uow.appointments.get_for_patient(appointment_id, patient_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    async def get_by_reference(self, patient_id: str, reference: str) -> AppointmentDto:
        async with self.uow_factory() as uow:
            appt = await uow.appointments.get_by_reference_for_patient(reference, patient_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    async def list_all(self, status: Optional[str] = None) -> List[AppointmentDto]:
        if status == "all":
            status = None
        if status is not None and status not in APPOINTMENT_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {list(APPOINTMENT_STATUSES)}", field="status")
        async with self.uow_factory() as uow:
            return await uow.appointments.list_all(status)

    async def update_status(self, appointment_id: int, status: str) -> AppointmentDto:
        if status not in APPOINTMENT_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {list(APPOINTMENT_STATUSES)}", field="status")
        async with self.uow_factory() as uow:
            appt = await uow.appointments.update_status(appointment_id, status)
            if not appt:
                raise NotFoundError("Appointment not found")
            await uow.commit()
        return appt
