import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from .....db.models import Appointment, Hospital, MedicalTest, User
from .....application.errors import ReferenceCollision
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    BookedSlot,
    HospitalDto,
    MedicalTestDto,
    PatientDto,
)
from ..errors import is_unique_violation_on

logger = logging.getLogger(__name__)


def _with_projections(statement):
    return statement.options(
        selectinload(Appointment.hospital),
        selectinload(Appointment.medical_test),
        selectinload(Appointment.patient),
    ).execution_options(populate_existing=True)


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def dialect(self) -> str:
        return self.session.bind.dialect.name

    def _hospital_to_dto(self, h: Hospital) -> HospitalDto:
        return HospitalDto(
            id=h.id,
            name=h.name,
            province=h.province,
            district=h.district,
            sector=h.sector,
            street=h.street,
            latitude=h.latitude,
            longitude=h.longitude,
        )

    def _test_to_dto(self, t: MedicalTest) -> MedicalTestDto:
        return MedicalTestDto(id=t.id, name=t.name, category=t.category, price=t.price, duration=t.duration)

    def _appt_to_dto(self, a: Appointment, projections: bool = True) -> AppointmentDto:
        dto = AppointmentDto(
            id=a.id,
            reference=a.reference,
            patient_id=a.patient_id,
            hospital_id=a.hospital_id,
            test_id=a.test_id,
            appointment_date=a.appointment_date,
            time_slot=a.time_slot,
            status=a.status,
            patient_name=a.patient_name,
            patient_phone=a.patient_phone,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )
        if projections:
            dto.hospital = self._hospital_to_dto(a.hospital) if a.hospital else None
            dto.medical_test = self._test_to_dto(a.medical_test) if a.medical_test else None
            if a.patient:
                dto.patient = PatientDto(id=a.patient.id, name=a.patient.name, email=a.patient.email, phone=a.patient.phone)
        return dto

    async def get_hospital(self, hospital_id: str) -> Optional[HospitalDto]:
        h = (await self.session.exec(select(Hospital).where(Hospital.id == hospital_id))).first()
        return self._hospital_to_dto(h) if h else None

    async def get_test(self, test_id: str) -> Optional[MedicalTestDto]:
        t = (await self.session.exec(select(MedicalTest).where(MedicalTest.id == test_id))).first()
        return self._test_to_dto(t) if t else None

    async def lock_schedule(self, hospital_id: str, appointment_date: date) -> None:
        if self.dialect != "postgresql":
            logger.debug("No advisory locks on %s; booking %s/%s unlocked", self.dialect, hospital_id, appointment_date)
            return
        key = f"{hospital_id}|{appointment_date.isoformat()}"
        await self.session.exec(text("SELECT pg_advisory_xact_lock(hashtext(:key))").bindparams(key=key))

    async def list_booked(self, hospital_id: str, appointment_date: date) -> List[BookedSlot]:
        rows = (
            await self.session.exec(
                select(Appointment.id, Appointment.time_slot, MedicalTest.duration)
                .join(MedicalTest, MedicalTest.id == Appointment.test_id, isouter=True)
                .where(Appointment.hospital_id == hospital_id)
                .where(Appointment.appointment_date == appointment_date)
                .where(Appointment.status != "cancelled")
            )
        ).all()
        return [BookedSlot(id=r[0], time_slot=r[1], duration=r[2]) for r in rows]

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
        appt = Appointment(
            reference=reference,
            patient_id=patient_id,
            patient_name=patient_name,
            patient_phone=patient_phone,
            hospital_id=hospital_id,
            test_id=test_id,
            appointment_date=appointment_date,
            time_slot=time_slot,
            status="pending",
        )
        self.session.add(appt)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if is_unique_violation_on(e, "reference", self.dialect):
                logger.warning("Reference %s already taken: %s", reference, e.orig)
                raise ReferenceCollision() from e
            raise
        return self._appt_to_dto(appt, projections=False)

    async def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = (await self.session.exec(_with_projections(select(Appointment).where(Appointment.id == appointment_id)))).first()
        return self._appt_to_dto(a) if a else None

    async def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        rows = (
            await self.session.exec(
                _with_projections(
                    select(Appointment)
                    .where(Appointment.patient_id == patient_id)
                    .order_by(Appointment.appointment_date.desc(), Appointment.time_slot.desc())
                )
            )
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    async def get_for_patient(self, appointment_id: int, patient_id: str) -> Optional[AppointmentDto]:
        a = (
            await self.session.exec(
                _with_projections(
                    select(Appointment)
                    .where(Appointment.id == appointment_id)
                    .where(Appointment.patient_id == patient_id)
                )
            )
        ).first()
        return self._appt_to_dto(a) if a else None

    async def get_by_reference_for_patient(self, reference: str, patient_id: str) -> Optional[AppointmentDto]:
        a = (
            await self.session.exec(
                _with_projections(
                    select(Appointment)
                    .where(Appointment.reference == reference)
                    .where(Appointment.patient_id == patient_id)
                )
            )
        ).first()
        return self._appt_to_dto(a) if a else None

    async def list_all(self, status: Optional[str] = None) -> List[AppointmentDto]:
        query = select(Appointment)
        if status:
            query = query.where(Appointment.status == status)
        rows = (
            await self.session.exec(
                _with_projections(query.order_by(Appointment.appointment_date.desc(), Appointment.time_slot.desc()))
            )
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    async def update_status(self, appointment_id: int, status: str) -> Optional[AppointmentDto]:
        a = (await self.session.exec(_with_projections(select(Appointment).where(Appointment.id == appointment_id)))).first()
        if not a:
            return None
        a.status = status
        a.updated_at = datetime.now(timezone.utc)
        self.session.add(a)
        await self.session.flush()
        return self._appt_to_dto(a)
