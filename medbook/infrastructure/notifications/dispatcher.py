import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from ...db.models import Notification
from ...application.ports.appointments_repo import AppointmentDto
from ...application.ports.notifier import BookingNotifier, SmsSender
from ...utils import normalize_phone

logger = logging.getLogger(__name__)


def confirmation_sms_body(appointment: AppointmentDto) -> str:
    patient = appointment.patient_name or "Patient"
    test = appointment.medical_test.name if appointment.medical_test else ""
    hospital = appointment.hospital.name if appointment.hospital else ""
    return (
        f"Hello {patient}, your appointment ({appointment.reference}) for {test} at {hospital} "
        f"is confirmed for {appointment.appointment_date.isoformat()} {appointment.time_slot}. Thank you."
    )


class NotificationDispatcher(BookingNotifier):
    """Post-commit notifications. Never raises: a failed SMS or insert is only logged."""

    def __init__(self, session_factory: Callable[[], AsyncSession], sms_sender: Optional[SmsSender] = None):
        self.session_factory = session_factory
        self.sms_sender = sms_sender

    async def appointment_booked(self, appointment: AppointmentDto) -> None:
        await self._record(
            appointment,
            title="Appointment booked",
            message=f"Appointment {appointment.reference} booked for "
            f"{appointment.appointment_date.isoformat()} {appointment.time_slot}",
            channels=[],
            priority="medium",
        )

    async def appointment_confirmed(self, appointment: AppointmentDto) -> None:
        sms_status = await self._send_sms(appointment)
        await self._record(
            appointment,
            title="Appointment confirmed",
            message=f"Your appointment {appointment.reference} has been confirmed for "
            f"{appointment.appointment_date.isoformat()}",
            channels=["sms", "in_app"],
            priority="high",
            delivery_status={"sms": sms_status},
        )

    async def _send_sms(self, appointment: AppointmentDto) -> Dict[str, Any]:
        if self.sms_sender is None:
            logger.info("SMS not configured; skipping confirmation SMS for %s", appointment.reference)
            return {"sent": False, "info": "not configured"}
        raw = appointment.patient_phone or (appointment.patient.phone if appointment.patient else None)
        if not raw:
            logger.warning("No phone number for appointment %s; skipping SMS", appointment.reference)
            return {"sent": False, "info": "no phone number"}
        to = normalize_phone(raw)
        if to is None:
            logger.warning("Invalid phone number %r for appointment %s; skipping SMS", raw, appointment.reference)
            return {"sent": False, "info": "invalid phone number"}
        try:
            sid = await asyncio.to_thread(self.sms_sender.send, to, confirmation_sms_body(appointment))
        except Exception as e:
            logger.error(f"Error sending confirmation SMS for {appointment.reference}: {e}")
            return {"sent": False, "info": str(e)}
        return {"sent": True, "info": sid}

    async def _record(
        self,
        appointment: AppointmentDto,
        title: str,
        message: str,
        channels: List[str],
        priority: str,
        delivery_status: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            async with self.session_factory() as session:
                session.add(
                    Notification(
                        patient_id=appointment.patient_id,
                        type="appointment_confirmation",
                        title=title,
                        message=message,
                        data=json.dumps({"appointmentId": appointment.id, "reference": appointment.reference}),
                        channels=json.dumps(channels),
                        delivery_status=json.dumps(delivery_status or {}),
                        priority=priority,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception("Failed to record '%s' notification for appointment %s", title, appointment.reference)
