import contextlib
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from .....database import REFERENCE_SEQUENCE
from .....db.models import Appointment
from .....application.errors import ResourceUnavailable
from .....application.ports.references_repo import ReferenceStore
from ..errors import UNDEFINED_TABLE, sqlstate

logger = logging.getLogger(__name__)


class SqlReferenceStore(ReferenceStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def dialect(self) -> str:
        return self.session.bind.dialect.name

    def _savepoint(self):
        # A failed statement aborts the whole PostgreSQL transaction unless it ran in a savepoint
        if self.dialect == "postgresql":
            return self.session.begin_nested()
        return contextlib.nullcontext()

    async def next_sequence_value(self) -> int:
        if self.dialect != "postgresql":
            raise ResourceUnavailable(f"{self.dialect} has no sequence {REFERENCE_SEQUENCE}")
        try:
            async with self._savepoint():
                result = await self.session.exec(text(f"SELECT nextval('{REFERENCE_SEQUENCE}') AS next_val"))
                value = result.scalar_one()
        except DBAPIError as e:
            if sqlstate(e) == UNDEFINED_TABLE:
                raise ResourceUnavailable(f"Sequence {REFERENCE_SEQUENCE} does not exist") from e
            raise
        return int(value)

    async def latest_reference(self, prefix: str) -> Optional[str]:
        async with self._savepoint():
            return (
                await self.session.exec(
                    select(Appointment.reference)
                    .where(Appointment.reference.like(f"{prefix}%"))
                    .order_by(Appointment.created_at.desc(), Appointment.id.desc())
                    .limit(1)
                )
            ).first()
