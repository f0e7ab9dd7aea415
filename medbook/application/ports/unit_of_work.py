from typing import Protocol

from .appointments_repo import AppointmentsRepository
from .references_repo import ReferenceStore


class UnitOfWork(Protocol):
    """One all-or-nothing transaction.

    Leaving the ``async with`` block without ``commit()`` rolls everything back.
    """

    appointments: AppointmentsRepository
    references: ReferenceStore

    async def __aenter__(self) -> "UnitOfWork":
        ...

    async def __aexit__(self, exc_type, exc, tb) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
