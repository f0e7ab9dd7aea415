"""
Appointment booking coordinator.

Runs the whole booking flow inside one unit of work:

1. Check required fields
2. Check date/time format, weekday and opening hours
3. Resolve the medical test's duration
4. Lock the hospital's day (when enabled) and reject overlapping bookings
5. Generate a unique reference
6. Insert the appointment as ``pending``
7. Re-read it with hospital and test projections, then commit

Anything raised before the commit rolls the transaction back, so a failed
booking leaves neither a row nor a visible reference behind.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, List, Optional

from ..errors import NotFoundError, ValidationError
from ..ports.appointments_repo import AppointmentDto
from ..ports.references_repo import ReferenceStore
from ..ports.unit_of_work import UnitOfWork
from ..scheduling.availability import available_slots_for_policy
from ..scheduling.intervals import Interval, occupied_intervals, resolve_duration
from ..scheduling.policy import SchedulingPolicy
from ..scheduling.references import ReferenceGenerator
from ..scheduling.validation import BookingValidator, parse_appointment_date

logger = logging.getLogger(__name__)


@dataclass
class Availability:
    hospital_id: str
    appointment_date: date
    duration: int
    slots: List[str]
    opens: str
    closes: str


@dataclass
class BookingService:
    uow_factory: Callable[[], UnitOfWork]
    policy: SchedulingPolicy
    reference_generator: Callable[[ReferenceStore], ReferenceGenerator] = field(default=ReferenceGenerator)

    @property
    def validator(self) -> BookingValidator:
        return BookingValidator(self.policy)

    async def book(
        self,
        *,
        patient_id: str,
        hospital_id: Optional[str],
        test_id: Optional[str],
        appointment_date: Optional[str],
        time_slot: Optional[str],
        patient_name: Optional[str] = None,
        patient_phone: Optional[str] = None,
    ) -> AppointmentDto:
        required = (
            ("hospital_id", hospital_id),
            ("test_id", test_id),
            ("appointment_date", appointment_date),
            ("time_slot", time_slot),
        )
        missing = [name for name, value in required if not value]
        if missing:
            raise ValidationError("Hospital, test, date, and time are required", field=missing[0])

        request = self.validator.check_request(appointment_date, time_slot)

        async with self.uow_factory() as uow:
            if await uow.appointments.get_hospital(hospital_id) is None:
                raise NotFoundError("Hospital not found", field="hospital_id")
            test = await uow.appointments.get_test(test_id)
            if test is None:
                raise NotFoundError("Medical test not found", field="test_id")

            duration = resolve_duration(test.duration, self.policy.default_duration)
            candidate = Interval.from_start(request.start, duration)
            self.validator.check_within_hours(candidate)

            if self.policy.lock_schedule:
                await uow.appointments.lock_schedule(hospital_id, request.appointment_date)
            existing = await uow.appointments.list_booked(hospital_id, request.appointment_date)
            self.validator.check_conflicts(candidate, occupied_intervals(existing, self.policy.default_duration))

            reference = await self.reference_generator(uow.references).generate()
            created = await uow.appointments.create(
                reference=reference,
                patient_id=patient_id,
                patient_name=patient_name,
                patient_phone=patient_phone,
                hospital_id=hospital_id,
                test_id=test_id,
                appointment_date=request.appointment_date,
                time_slot=request.time_slot,
            )
            appointment = await uow.appointments.get_by_id(created.id) or created
            await uow.commit()

        logger.info(
            "Booked appointment %s (%s) at hospital %s on %s %s for patient %s",
            appointment.id,
            appointment.reference,
            hospital_id,
            request.appointment_date.isoformat(),
            request.time_slot,
            patient_id,
        )
        return appointment

    async def availability(
        self,
        hospital_id: Optional[str],
        appointment_date: Optional[str],
        duration: Any = None,
        test_id: Optional[str] = None,
    ) -> Availability:
        """Free start times for a day, recomputed from current bookings on every call."""
        if not hospital_id or not appointment_date:
            raise ValidationError("hospital_id and date are required", field="hospital_id" if not hospital_id else "date")
        day = parse_appointment_date(appointment_date)

        async with self.uow_factory() as uow:
            raw_duration = duration
            if raw_duration is None and test_id:
                test = await uow.appointments.get_test(test_id)
                raw_duration = test.duration if test else None
            minutes = resolve_duration(raw_duration, self.policy.default_duration)
            existing = await uow.appointments.list_booked(hospital_id, day)

        occupied = occupied_intervals(existing, self.policy.default_duration)
        return Availability(
            hospital_id=hospital_id,
            appointment_date=day,
            duration=minutes,
            slots=available_slots_for_policy(occupied, minutes, self.policy),
            opens=self.policy.opens_label,
            closes=self.policy.closes_label,
        )
