import asyncio
import dataclasses
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from medbook.application.errors import ReferenceCollision, ResourceUnavailable
from medbook.application.ports.appointments_repo import (
    AppointmentDto,
    BookedSlot,
    HospitalDto,
    MedicalTestDto,
)
from medbook.application.scheduling.policy import WEEKDAY_NAMES


def next_weekday(name: str, start: Optional[date] = None) -> date:
    start = start or date.today()
    delta = (WEEKDAY_NAMES.index(name.lower()) - start.weekday()) % 7 or 7
    return start + timedelta(days=delta)


class FakeDb:
    """Committed state shared by every unit of work, plus a sequence that ignores rollbacks."""

    def __init__(self):
        self.hospitals: Dict[str, HospitalDto] = {}
        self.tests: Dict[str, MedicalTestDto] = {}
        self.appointments: List[AppointmentDto] = []
        self.sequence = 0
        self.sequence_available = True
        self.next_id = 1
        self.locks: Dict[str, asyncio.Lock] = {}
        self.lock_calls: List[str] = []


class FakeAppointmentsRepo:
    def __init__(self, db: FakeDb, uow: "FakeUnitOfWork"):
        self.db = db
        self.uow = uow

    def _visible(self) -> List[AppointmentDto]:
        return self.db.appointments + self.uow.staged

    def _project(self, a: AppointmentDto) -> AppointmentDto:
        return dataclasses.replace(a, hospital=self.db.hospitals.get(a.hospital_id), medical_test=self.db.tests.get(a.test_id))

    async def get_hospital(self, hospital_id):
        return self.db.hospitals.get(hospital_id)

    async def get_test(self, test_id):
        return self.db.tests.get(test_id)

    async def lock_schedule(self, hospital_id, appointment_date):
        key = f"{hospital_id}|{appointment_date.isoformat()}"
        self.db.lock_calls.append(key)
        lock = self.db.locks.setdefault(key, asyncio.Lock())
        await lock.acquire()
        self.uow.held.append(lock)

    async def list_booked(self, hospital_id, appointment_date):
        # yield so concurrent bookings interleave
        await asyncio.sleep(0)
        return [
            BookedSlot(
                id=a.id,
                time_slot=a.time_slot,
                duration=self.db.tests[a.test_id].duration if a.test_id in self.db.tests else None,
            )
            for a in self._visible()
            if a.hospital_id == hospital_id and a.appointment_date == appointment_date and a.status != "cancelled"
        ]

    async def create(self, reference, patient_id, patient_name, patient_phone, hospital_id, test_id, appointment_date, time_slot):
        await asyncio.sleep(0)
        if any(a.reference == reference for a in self._visible()):
            raise ReferenceCollision()
        now = datetime.now(timezone.utc)
        appt = AppointmentDto(
            id=self.db.next_id,
            reference=reference,
            patient_id=patient_id,
            hospital_id=hospital_id,
            test_id=test_id,
            appointment_date=appointment_date,
            time_slot=time_slot,
            status="pending",
            patient_name=patient_name,
            patient_phone=patient_phone,
            created_at=now,
            updated_at=now,
        )
        self.db.next_id += 1
        self.uow.staged.append(appt)
        return appt

    async def get_by_id(self, appointment_id):
        a = next((a for a in self._visible() if a.id == appointment_id), None)
        return self._project(a) if a else None

    async def list_for_patient(self, patient_id):
        return [self._project(a) for a in self._visible() if a.patient_id == patient_id]

    async def get_for_patient(self, appointment_id, patient_id):
        a = next((a for a in self._visible() if a.id == appointment_id and a.patient_id == patient_id), None)
        return self._project(a) if a else None

    async def get_by_reference_for_patient(self, reference, patient_id):
        a = next((a for a in self._visible() if a.reference == reference and a.patient_id == patient_id), None)
        return self._project(a) if a else None

    async def list_all(self, status=None):
        return [self._project(a) for a in self._visible() if status is None or a.status == status]

    async def update_status(self, appointment_id, status):
        a = next((a for a in self._visible() if a.id == appointment_id), None)
        if not a:
            return None
        a.status = status
        return self._project(a)


class FakeReferenceStore:
    def __init__(self, db: FakeDb):
        self.db = db

    async def next_sequence_value(self):
        if not self.db.sequence_available:
            raise ResourceUnavailable("sequence missing")
        await asyncio.sleep(0)
        self.db.sequence += 1
        return self.db.sequence

    async def latest_reference(self, prefix):
        refs = [a.reference for a in self.db.appointments if a.reference.startswith(prefix)]
        return refs[-1] if refs else None


class FakeUnitOfWork:
    def __init__(self, db: FakeDb):
        self.db = db
        self.staged: List[AppointmentDto] = []
        self.held: List[asyncio.Lock] = []
        self.committed = False

    async def __aenter__(self):
        self.staged = []
        self.held = []
        self.committed = False
        self.appointments = FakeAppointmentsRepo(self.db, self)
        self.references = FakeReferenceStore(self.db)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if not self.committed:
            await self.rollback()
        for lock in self.held:
            lock.release()
        self.held = []

    async def commit(self):
        self.db.appointments.extend(self.staged)
        self.staged = []
        self.committed = True

    async def rollback(self):
        self.staged = []


@pytest.fixture
def fake_db():
    db = FakeDb()
    db.hospitals["h1"] = HospitalDto(id="h1", name="King Faisal Hospital", district="Gasabo")
    db.hospitals["h2"] = HospitalDto(id="h2", name="CHUK", district="Nyarugenge")
    db.tests["mri"] = MedicalTestDto(id="mri", name="MRI Scan", category="radiology", price=120000, duration="45")
    db.tests["xray"] = MedicalTestDto(id="xray", name="Chest X-Ray", category="radiology", price=15000, duration="30")
    db.tests["ecg"] = MedicalTestDto(id="ecg", name="ECG", category="cardiology", price=20000, duration="30 minutes")
    return db


@pytest.fixture
def uow_factory(fake_db):
    return lambda: FakeUnitOfWork(fake_db)


@pytest.fixture
def monday():
    return next_weekday("monday")


@pytest.fixture
def thursday():
    return next_weekday("thursday")
