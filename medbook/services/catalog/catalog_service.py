# medbook/services/catalog/catalog_service.py
import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ...application.errors import CatalogConflict, NotFoundError
from ...db.models import Appointment, Hospital, MedicalTest
from ...schemas import HospitalCreate, HospitalUpdate, MedicalTestCreate, MedicalTestUpdate
from ...utils import normalize_phone

logger = logging.getLogger(__name__)


class CatalogService:
    """Hospitals and the medical tests they offer."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, model, *conditions) -> int:
        query = select(func.count()).select_from(model)
        for condition in conditions:
            query = query.where(condition)
        return (await self.session.exec(query)).one()

    async def _save(self, obj, conflict_message: str):
        self.session.add(obj)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Catalogue write rejected: {e.orig}")
            raise CatalogConflict(conflict_message) from e
        await self.session.refresh(obj)
        return obj

    async def _require_hospital(self, hospital_id: Optional[str]) -> None:
        if hospital_id and await self.get_hospital(hospital_id) is None:
            raise NotFoundError("Hospital not found", field="hospital_id")

    # Hospitals

    async def list_hospitals(self, active_only: bool = True) -> List[Hospital]:
        query = select(Hospital)
        if active_only:
            query = query.where(Hospital.is_active == True)  # noqa: E712
        return list((await self.session.exec(query.order_by(Hospital.name))).all())

    async def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        return (await self.session.exec(select(Hospital).where(Hospital.id == hospital_id))).first()

    async def create_hospital(self, data: HospitalCreate) -> Hospital:
        payload = data.model_dump()
        payload["facilities"] = json.dumps(payload.get("facilities") or [])
        payload["phone"] = normalize_phone(payload["phone"]) or payload["phone"]
        hospital = await self._save(Hospital(**payload), "A hospital with this email already exists")
        logger.info(f"Created hospital {hospital.id} ({hospital.name})")
        return hospital

    async def update_hospital(self, hospital_id: str, data: HospitalUpdate) -> Optional[Hospital]:
        hospital = await self.get_hospital(hospital_id)
        if hospital is None:
            return None
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "facilities" in changes:
            changes["facilities"] = json.dumps(changes["facilities"])
        if "phone" in changes:
            changes["phone"] = normalize_phone(changes["phone"]) or changes["phone"]
        for key, value in changes.items():
            setattr(hospital, key, value)
        hospital.updated_at = datetime.now(timezone.utc)
        hospital = await self._save(hospital, "A hospital with this email already exists")
        logger.info(f"Updated hospital {hospital.id}: {sorted(changes)}")
        return hospital

    async def delete_hospital(self, hospital_id: str) -> bool:
        hospital = await self.get_hospital(hospital_id)
        if hospital is None:
            return False
        if await self._count(Appointment, Appointment.hospital_id == hospital_id):
            raise CatalogConflict("Hospital has appointments and cannot be deleted. Deactivate it instead.")
        if await self._count(MedicalTest, MedicalTest.hospital_id == hospital_id):
            raise CatalogConflict("Hospital still offers medical tests. Delete or move them first.")
        await self.session.delete(hospital)
        await self.session.commit()
        logger.info(f"Deleted hospital {hospital_id}")
        return True

    # Medical tests

    async def list_tests(
        self,
        hospital_id: Optional[str] = None,
        category: Optional[str] = None,
        available_only: bool = True,
    ) -> List[MedicalTest]:
        query = select(MedicalTest)
        if hospital_id:
            query = query.where(MedicalTest.hospital_id == hospital_id)
        if category:
            query = query.where(MedicalTest.category == category)
        if available_only:
            query = query.where(MedicalTest.is_available == True)  # noqa: E712
        return list((await self.session.exec(query.order_by(MedicalTest.name))).all())

    async def get_test(self, test_id: str) -> Optional[MedicalTest]:
        return (await self.session.exec(select(MedicalTest).where(MedicalTest.id == test_id))).first()

    async def create_test(self, data: MedicalTestCreate) -> MedicalTest:
        await self._require_hospital(data.hospital_id)
        test = await self._save(MedicalTest(**data.model_dump()), "Medical test could not be saved")
        logger.info(f"Created medical test {test.id} ({test.name})")
        return test

    async def update_test(self, test_id: str, data: MedicalTestUpdate) -> Optional[MedicalTest]:
        test = await self.get_test(test_id)
        if test is None:
            return None
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        await self._require_hospital(changes.get("hospital_id"))
        for key, value in changes.items():
            setattr(test, key, value)
        test.updated_at = datetime.now(timezone.utc)
        test = await self._save(test, "Medical test could not be saved")
        logger.info(f"Updated medical test {test.id}: {sorted(changes)}")
        return test

    async def delete_test(self, test_id: str) -> bool:
        test = await self.get_test(test_id)
        if test is None:
            return False
        if await self._count(Appointment, Appointment.test_id == test_id):
            raise CatalogConflict("Medical test has appointments and cannot be deleted. Mark it unavailable instead.")
        await self.session.delete(test)
        await self.session.commit()
        logger.info(f"Deleted medical test {test_id}")
        return True
