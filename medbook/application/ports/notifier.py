from typing import Protocol

from .appointments_repo import AppointmentDto


class BookingNotifier(Protocol):
    async def appointment_booked(self, appointment: AppointmentDto) -> None:
        ...

    async def appointment_confirmed(self, appointment: AppointmentDto) -> None:
        ...


class SmsSender(Protocol):
    def send(self, to: str, body: str) -> str:
        ...
