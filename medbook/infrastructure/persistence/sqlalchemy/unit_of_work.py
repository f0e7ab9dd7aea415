import logging
from typing import Callable, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from ....application.ports.unit_of_work import UnitOfWork
from .repositories.appointments_repository_sql import SqlAppointmentsRepository
from .repositories.reference_store_sql import SqlReferenceStore

logger = logging.getLogger(__name__)


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._committed = False

    async def __aenter__(self) -> "SqlUnitOfWork":
        self.session = self.session_factory()
        self.appointments = SqlAppointmentsRepository(self.session)
        self.references = SqlReferenceStore(self.session)
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._committed:
                if exc_type is not None:
                    logger.debug("Rolling back unit of work after %s: %s", exc_type.__name__, exc)
                await self.rollback()
        finally:
            await self.session.close()
            self.session = None

    async def commit(self) -> None:
        await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self.session.rollback()
