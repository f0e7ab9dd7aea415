import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

from ..errors import ConflictError, PolicyViolation, ValidationError
from .intervals import TIME_SLOT_PATTERN, Interval, first_overlap
from .policy import WEEKDAY_NAMES, WEEKEND, SchedulingPolicy

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class SlotRequest:
    appointment_date: date
    time_slot: str
    start: int

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.appointment_date.weekday()]


def parse_appointment_date(value: Any) -> date:
    text = str(value) if value is not None else ""
    if not DATE_PATTERN.match(text):
        raise ValidationError("Invalid appointment_date format. Use YYYY-MM-DD.", field="appointment_date")
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid appointment date.", field="appointment_date")


@dataclass(frozen=True)
class BookingValidator:
    policy: SchedulingPolicy

    def check_request(self, appointment_date: Any, time_slot: Any) -> SlotRequest:
        """Format, weekday and opening-hour checks. Touches no storage."""
        date_str = str(appointment_date) if appointment_date is not None else ""
        time_str = str(time_slot) if time_slot is not None else ""
        if not DATE_PATTERN.match(date_str):
            raise ValidationError("Invalid appointment_date format. Use YYYY-MM-DD.", field="appointment_date")
        if not TIME_SLOT_PATTERN.match(time_str):
            raise ValidationError("Invalid time_slot format. Use HH:MM (24-hour).", field="time_slot")
        day = parse_appointment_date(date_str)
        try:
            clock = datetime.strptime(time_str, "%H:%M")
        except ValueError:
            raise ValidationError("Invalid appointment time.", field="time_slot")

        request = SlotRequest(
            appointment_date=day,
            time_slot=time_str,
            start=clock.hour * 60 + clock.minute,
        )

        weekday = request.weekday_name
        if weekday in WEEKEND:
            raise PolicyViolation("Appointments can only be scheduled Monday to Friday.", field="appointment_date")
        if not self.policy.is_allowed_day(weekday):
            raise PolicyViolation(
                f"This test is only available on: {self.policy.allowed_days_label}.",
                field="appointment_date",
            )

        if request.start < self.policy.opens or request.start >= self.policy.closes:
            raise PolicyViolation(
                f"Appointments must be between {self.policy.opens_label} and {self.policy.closes_label}.",
                field="time_slot",
            )
        return request

    def check_within_hours(self, candidate: Interval) -> None:
        if candidate.end > self.policy.closes:
            raise PolicyViolation(
                f"Appointment {candidate} would end after closing time ({self.policy.closes_label}).",
                field="time_slot",
            )

    def check_conflicts(self, candidate: Interval, occupied: Iterable[Interval]) -> None:
        clash = first_overlap(candidate, occupied)
        if clash is not None:
            logger.info("Requested slot %s overlaps existing booking %s", candidate, clash)
            raise ConflictError()
